"""Tests for the local store, the Firestore store and the gateway."""

import pytest
import yaml
from google.auth import exceptions as auth_exceptions

from scriptarch.errors import PersistenceDeleteFailed, PersistenceReadFailed, PersistenceWriteFailed
from scriptarch.models import GUEST_USER_ID, Scene, ScriptAnalysis
from scriptarch.storage import FirestoreScriptStore, PersistenceGateway
from scriptarch.storage import firestore as firestore_module


def make_script(user_id: str = GUEST_USER_ID, created_at: int = 1_000, title: str = "Review") -> ScriptAnalysis:
    return ScriptAnalysis(
        user_id=user_id,
        title=title,
        created_at=created_at,
        tags=["Skincare"],
        scenes=[Scene(start_time="0s", end_time="5s", type="Hook", audio_script="Hi")],
    )


# ----------------------------------------------------------------------
# Local store
# ----------------------------------------------------------------------

def test_local_round_trip(local_store):
    script = make_script()
    local_store.save(script)

    assert local_store.fetch_all(GUEST_USER_ID) == [script]


def test_local_store_writes_camel_case_yaml(local_store):
    local_store.save(make_script())

    with open(local_store.path, encoding="utf-8") as f:
        records = yaml.safe_load(f)

    assert records[0]["userId"] == GUEST_USER_ID
    assert "audioScript" in records[0]["scenes"][0]


def test_local_save_is_an_upsert(local_store):
    script = make_script()
    local_store.save(script)
    local_store.save(script.add_tag("Emmie"))

    stored = local_store.fetch_all(GUEST_USER_ID)
    assert len(stored) == 1
    assert stored[0].tags == ["Skincare", "Emmie"]


def test_local_fetch_is_newest_first(local_store):
    old = make_script(created_at=1_000, title="old")
    new = make_script(created_at=2_000, title="new")
    local_store.save(new)
    local_store.save(old)

    assert [s.title for s in local_store.fetch_all(GUEST_USER_ID)] == ["new", "old"]


def test_local_delete(local_store):
    keep, drop = make_script(title="keep"), make_script(title="drop")
    local_store.save(keep)
    local_store.save(drop)

    local_store.delete(drop.id, GUEST_USER_ID)
    local_store.delete("missing", GUEST_USER_ID)

    assert local_store.fetch_all(GUEST_USER_ID) == [keep]


def test_local_missing_file_is_empty(local_store):
    assert local_store.fetch_all(GUEST_USER_ID) == []


def test_local_corrupt_file_is_empty(local_store):
    local_store.path.write_text("{not: [valid", encoding="utf-8")
    assert local_store.fetch_all(GUEST_USER_ID) == []


def test_local_invalid_records_are_skipped(local_store):
    local_store.path.write_text(
        yaml.safe_dump([{"id": "ok", "userId": GUEST_USER_ID}, {"id": "bad", "tags": 7}]),
        encoding="utf-8",
    )
    assert [s.id for s in local_store.fetch_all(GUEST_USER_ID)] == ["ok"]


# ----------------------------------------------------------------------
# Firestore store
# ----------------------------------------------------------------------

def test_remote_round_trip(remote_store, firestore_client):
    script = make_script(user_id="user-1")
    remote_store.save(script)

    assert firestore_client.data["scripts"][script.id]["userId"] == "user-1"
    assert remote_store.fetch_all("user-1") == [script]


def test_remote_listing_filters_by_owner_and_sorts(remote_store):
    mine_old = make_script(user_id="user-1", created_at=1_000)
    mine_new = make_script(user_id="user-1", created_at=3_000)
    remote_store.save(mine_old)
    remote_store.save(make_script(user_id="user-2", created_at=2_000))
    remote_store.save(mine_new)

    assert remote_store.fetch_all("user-1") == [mine_new, mine_old]


def test_remote_save_is_an_upsert(remote_store, firestore_client):
    script = make_script(user_id="user-1")
    remote_store.save(script)
    remote_store.save(script.add_tag("Emmie"))

    assert len(firestore_client.data["scripts"]) == 1
    assert remote_store.fetch_all("user-1")[0].tags == ["Skincare", "Emmie"]


def test_remote_save_failure(remote_store, firestore_client):
    firestore_client.failing.add("write")
    with pytest.raises(PersistenceWriteFailed):
        remote_store.save(make_script(user_id="user-1"))


def test_remote_listing_failure_returns_empty(remote_store, firestore_client):
    remote_store.save(make_script(user_id="user-1"))
    firestore_client.failing.add("read")

    assert remote_store.fetch_all("user-1") == []


def test_remote_delete(remote_store, firestore_client):
    script = make_script(user_id="user-1")
    remote_store.save(script)

    remote_store.delete(script.id, "user-1")
    remote_store.delete("missing", "user-1")

    assert firestore_client.data["scripts"] == {}


def test_remote_delete_failure(remote_store, firestore_client):
    script = make_script(user_id="user-1")
    remote_store.save(script)
    firestore_client.failing.add("delete")

    with pytest.raises(PersistenceDeleteFailed):
        remote_store.delete(script.id, "user-1")


def test_remote_delete_of_someone_elses_script(remote_store, firestore_client):
    script = make_script(user_id="user-2")
    remote_store.save(script)

    with pytest.raises(PersistenceDeleteFailed):
        remote_store.delete(script.id, "user-1")

    assert script.id in firestore_client.data["scripts"]


def test_save_many_commits_in_chunks(remote_store, firestore_client, monkeypatch):
    monkeypatch.setattr(firestore_module, "MAX_BATCH_WRITES", 2)
    scripts = [make_script(user_id="user-1", created_at=i) for i in range(5)]

    written = remote_store.save_many(scripts)

    assert written == [s.id for s in scripts]
    assert firestore_client.commits == 3


# ----------------------------------------------------------------------
# Gateway
# ----------------------------------------------------------------------

def test_gateway_routes_by_owner(gateway, local_store, firestore_client):
    guest = make_script()
    user = make_script(user_id="user-1")

    gateway.save(guest)
    gateway.save(user)

    assert local_store.fetch_all(GUEST_USER_ID) == [guest]
    assert list(firestore_client.data["scripts"]) == [user.id]
    assert gateway.fetch_all(GUEST_USER_ID) == [guest]
    assert gateway.fetch_all("user-1") == [user]


def test_gateway_creates_remote_store_lazily(local_store):
    built = []

    def factory():
        built.append(True)
        raise AssertionError("remote store should not be needed")

    gateway = PersistenceGateway(local=local_store, remote_factory=factory)
    gateway.save(make_script())

    assert gateway.fetch_all(GUEST_USER_ID)
    assert built == []


def test_gateway_delete_routes_by_owner(gateway, local_store):
    guest = make_script()
    gateway.save(guest)

    gateway.delete(guest.id, GUEST_USER_ID)

    assert local_store.fetch_all(GUEST_USER_ID) == []


def test_migration_moves_every_guest_script(gateway, local_store, remote_store):
    guest_scripts = [make_script(created_at=i) for i in range(3)]
    for script in guest_scripts:
        local_store.save(script)

    count = gateway.migrate_guest_to_user("user-1")

    assert count == 3
    assert local_store.load_all() == []
    migrated = remote_store.fetch_all("user-1")
    assert {s.id for s in migrated} == {s.id for s in guest_scripts}
    assert all(s.user_id == "user-1" for s in migrated)


def test_migration_with_no_guest_scripts_is_a_no_op(gateway, firestore_client):
    assert gateway.migrate_guest_to_user("user-1") == 0
    assert firestore_client.commits == 0


def test_failed_migration_keeps_guest_scripts(gateway, local_store, firestore_client):
    script = make_script()
    local_store.save(script)
    firestore_client.failing.add("write")

    with pytest.raises(PersistenceWriteFailed):
        gateway.migrate_guest_to_user("user-1")

    assert local_store.fetch_all(GUEST_USER_ID) == [script]


def test_partial_migration_removes_only_written_scripts(gateway, local_store, firestore_client, monkeypatch):
    monkeypatch.setattr(firestore_module, "MAX_BATCH_WRITES", 1)
    first, second = make_script(created_at=2), make_script(created_at=1)
    local_store.save(second)
    local_store.save(first)

    original_batch = firestore_client.batch

    def batch():
        if firestore_client.commits == 1:
            firestore_client.failing.add("write")
        return original_batch()

    monkeypatch.setattr(firestore_client, "batch", batch)

    with pytest.raises(PersistenceWriteFailed) as exc:
        gateway.migrate_guest_to_user("user-1")

    assert exc.value.details["written"] == [first.id]
    assert [s.id for s in local_store.load_all()] == [second.id]


def test_migration_to_guest_is_rejected(gateway):
    with pytest.raises(ValueError):
        gateway.migrate_guest_to_user(GUEST_USER_ID)


def test_remote_store_requires_project_when_building_client(monkeypatch):
    from scriptarch.config import config

    monkeypatch.setattr(config, "google_cloud_project", "")
    with pytest.raises(ValueError):
        FirestoreScriptStore()


# ----------------------------------------------------------------------
# Damaged local files
# ----------------------------------------------------------------------

def test_save_refuses_to_overwrite_corrupt_file(local_store):
    local_store.save(make_script(title="keep-me"))
    original = local_store.path.read_text(encoding="utf-8") + "- [broken\n"
    local_store.path.write_text(original, encoding="utf-8")

    with pytest.raises(PersistenceWriteFailed):
        local_store.save(make_script(title="new"))

    assert local_store.path.read_text(encoding="utf-8") == original


def test_delete_refuses_to_overwrite_corrupt_file(local_store):
    script = make_script()
    local_store.save(script)
    local_store.path.write_text("{not: [valid", encoding="utf-8")

    with pytest.raises(PersistenceDeleteFailed):
        local_store.delete(script.id, GUEST_USER_ID)

    assert local_store.path.read_text(encoding="utf-8") == "{not: [valid"


def test_save_refuses_file_that_is_not_a_list(local_store):
    local_store.path.write_text("title: not a list\n", encoding="utf-8")

    with pytest.raises(PersistenceWriteFailed):
        local_store.save(make_script())


def test_invalid_records_survive_later_saves(local_store):
    local_store.path.write_text(
        yaml.safe_dump([{"id": "bad", "tags": 7}]),
        encoding="utf-8",
    )

    local_store.save(make_script())

    with open(local_store.path, encoding="utf-8") as f:
        records = yaml.safe_load(f)
    assert {"id": "bad", "tags": 7} in records
    assert len(records) == 2


# ----------------------------------------------------------------------
# Unreachable remote store
# ----------------------------------------------------------------------

@pytest.fixture
def unconfigured_gateway(local_store, monkeypatch):
    from scriptarch.config import config

    monkeypatch.setattr(config, "google_cloud_project", "")
    return PersistenceGateway(local=local_store)


def test_listing_without_remote_configuration_is_empty(unconfigured_gateway):
    errors = []

    assert unconfigured_gateway.fetch_all("user-1", on_error=errors.append) == []

    assert len(errors) == 1
    assert isinstance(errors[0], PersistenceReadFailed)


def test_guest_listing_never_builds_remote_store(unconfigured_gateway, local_store):
    script = make_script()
    local_store.save(script)

    assert unconfigured_gateway.fetch_all(GUEST_USER_ID) == [script]


def test_save_without_remote_configuration_is_a_write_failure(unconfigured_gateway):
    with pytest.raises(PersistenceWriteFailed):
        unconfigured_gateway.save(make_script(user_id="user-1"))


def test_delete_without_remote_configuration_is_a_delete_failure(unconfigured_gateway):
    with pytest.raises(PersistenceDeleteFailed):
        unconfigured_gateway.delete("script-1", "user-1")


def test_migration_without_remote_configuration_keeps_guest_scripts(unconfigured_gateway, local_store):
    script = make_script()
    local_store.save(script)

    with pytest.raises(PersistenceWriteFailed) as exc:
        unconfigured_gateway.migrate_guest_to_user("user-1")

    assert exc.value.details["written"] == []
    assert local_store.fetch_all(GUEST_USER_ID) == [script]


def test_missing_credentials_are_a_write_failure(local_store):
    def factory():
        raise auth_exceptions.DefaultCredentialsError("no credentials")

    gateway = PersistenceGateway(local=local_store, remote_factory=factory)

    with pytest.raises(PersistenceWriteFailed):
        gateway.save(make_script(user_id="user-1"))
    assert gateway.fetch_all("user-1") == []


def test_expired_credentials_on_listing_give_empty_list(gateway, firestore_client):
    gateway.save(make_script(user_id="user-1"))
    firestore_client.error_type = auth_exceptions.RefreshError
    firestore_client.failing.add("read")
    errors = []

    assert gateway.fetch_all("user-1", on_error=errors.append) == []
    assert errors


def test_expired_credentials_on_save_and_delete(remote_store, firestore_client):
    script = make_script(user_id="user-1")
    remote_store.save(script)
    firestore_client.error_type = auth_exceptions.RefreshError
    firestore_client.failing.update({"write", "delete"})

    with pytest.raises(PersistenceWriteFailed):
        remote_store.save(script)
    with pytest.raises(PersistenceWriteFailed):
        remote_store.save_many([script])
    with pytest.raises(PersistenceDeleteFailed):
        remote_store.delete(script.id, "user-1")
