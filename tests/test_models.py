"""Tests for the script and scene models."""

import pytest
from pydantic import ValidationError

from scriptarch.models import GUEST_USER_ID, Scene, ScriptAnalysis


def make_script(**overrides) -> ScriptAnalysis:
    fields = dict(
        user_id="user-1",
        title="Review",
        video_name="clip.mp4",
        scenes=[Scene(start_time="0s", end_time="5s", type="Hook", audio_script="Hi")],
    )
    fields.update(overrides)
    return ScriptAnalysis(**fields)


def test_new_scripts_get_unique_ids():
    ids = {ScriptAnalysis().id for _ in range(200)}
    assert len(ids) == 200


def test_new_scenes_get_unique_ids():
    ids = {Scene().id for _ in range(200)}
    assert len(ids) == 200


def test_default_owner_is_guest():
    script = ScriptAnalysis()
    assert script.user_id == GUEST_USER_ID
    assert ScriptAnalysis.from_record(script.to_record()).user_id == GUEST_USER_ID


def test_add_existing_tag_leaves_tags_unchanged():
    script = make_script(tags=["Skincare"])
    assert script.add_tag("Skincare").tags == ["Skincare"]
    assert script.add_tag("  Skincare ").tags == ["Skincare"]


def test_add_tag_appends_and_returns_new_record():
    script = make_script(tags=["Skincare"])
    updated = script.add_tag("Emmie")

    assert updated.tags == ["Skincare", "Emmie"]
    assert script.tags == ["Skincare"]
    assert updated.id == script.id


def test_blank_tag_is_ignored():
    script = make_script()
    assert script.add_tag("   ") is script


def test_remove_tag():
    script = make_script(tags=["a", "b", "c"])
    assert script.remove_tag("b").tags == ["a", "c"]
    assert script.remove_tag("missing") is script


def test_duplicate_tags_are_dropped_on_load():
    script = ScriptAnalysis.from_record({"id": "x", "tags": ["a", "a", " b ", ""]})
    assert script.tags == ["a", "b"]


def test_with_scenes_keeps_identity_fields():
    script = make_script(tags=["t"])
    new_scenes = [Scene(audio_script="New line")]
    updated = script.with_scenes(new_scenes)

    assert updated.scenes == new_scenes
    assert (updated.id, updated.user_id, updated.created_at, updated.tags) == (
        script.id, script.user_id, script.created_at, script.tags
    )


def test_records_are_immutable():
    script = make_script()
    with pytest.raises(ValidationError):
        script.title = "changed"


def test_record_uses_camel_case_keys():
    record = make_script().to_record()

    assert {"id", "userId", "title", "videoName", "createdAt", "tags", "scenes"} == set(record)
    assert set(record["scenes"][0]) == {
        "id", "startTime", "endTime", "type", "visualDescription", "audioScript"
    }


def test_record_round_trip_is_lossless():
    script = make_script(tags=["x"])
    assert ScriptAnalysis.from_record(script.to_record()) == script


def test_scene_label():
    scene = Scene(type="Hook", start_time="0s", end_time="9s")
    assert scene.label == "Hook (0s - 9s)"
