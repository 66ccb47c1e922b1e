"""Shared fixtures and fakes for external collaborators."""

import copy
import json
from types import SimpleNamespace
from typing import Any, Callable, Optional, Union

import pytest
import requests
from google.api_core import exceptions as google_exceptions

from scriptarch.config import config
from scriptarch.services.gemini import GeminiClient
from scriptarch.storage import FirestoreScriptStore, LocalScriptStore, PersistenceGateway


@pytest.fixture(autouse=True)
def english_messages(monkeypatch):
    """Pin user-facing messages to English."""
    monkeypatch.setattr(config, "language", "en")


# ----------------------------------------------------------------------
# HTTP
# ----------------------------------------------------------------------

class FakeResponse:
    """Minimal stand-in for ``requests.Response``."""

    def __init__(
        self,
        status_code: int = 200,
        content: bytes = b"",
        content_type: str = "video/mp4",
        json_data: Any = None,
    ) -> None:
        self.status_code = status_code
        self.content = content
        self.headers = {"Content-Type": content_type} if content_type else {}
        self._json_data = json_data

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 400

    def json(self) -> Any:
        if self._json_data is None:
            raise ValueError("No JSON body")
        return self._json_data

    def raise_for_status(self) -> None:
        if not self.ok:
            raise requests.HTTPError(f"{self.status_code} error")


class FakeSession:
    """Routes GET requests by exact URL; unknown URLs return 404."""

    def __init__(self, routes: Optional[dict[str, Union[FakeResponse, Exception]]] = None) -> None:
        self.routes = dict(routes or {})
        self.calls: list[tuple[str, Optional[dict]]] = []

    def get(self, url: str, params: Optional[dict] = None, timeout: Optional[float] = None):
        self.calls.append((url, params))
        outcome = self.routes.get(url, FakeResponse(status_code=404, content=b""))
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    @property
    def urls(self) -> list[str]:
        return [url for url, _ in self.calls]


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


# ----------------------------------------------------------------------
# Gemini
# ----------------------------------------------------------------------

class FakeModels:
    """Stand-in for ``genai.Client().models``."""

    def __init__(self, reply: Union[str, Exception, Callable[..., str]]) -> None:
        self.reply = reply
        self.calls: list[dict] = []

    def generate_content(self, model, contents, config=None):
        self.calls.append({"model": model, "contents": contents, "config": config})
        if isinstance(self.reply, Exception):
            raise self.reply
        text = self.reply(contents) if callable(self.reply) else self.reply
        return SimpleNamespace(text=text)


class FakeGenaiClient:
    def __init__(self, reply: Union[str, Exception, Callable[..., str]] = "{}") -> None:
        self.models = FakeModels(reply)


def make_gemini(reply: Union[str, Exception, Callable[..., str]], timeout: float = 5.0) -> GeminiClient:
    """Build a GeminiClient around a fake SDK client."""
    return GeminiClient(
        api_key="test-key-123",
        model="gemini-test",
        timeout=timeout,
        client=FakeGenaiClient(reply),
    )


def script_json(title: str = "Mask pad review", count: int = 2) -> str:
    """Return a well-formed analysis response."""
    return json.dumps({
        "title": title,
        "scenes": [
            {
                "startTime": f"00:{i * 5:02d}",
                "endTime": f"00:{i * 5 + 5:02d}",
                "type": "Hook" if i == 0 else "Product Info",
                "visualDescription": f"Shot {i}",
                "audioScript": f"Line {i}",
            }
            for i in range(count)
        ],
    })


# ----------------------------------------------------------------------
# Firestore
# ----------------------------------------------------------------------

class FakeSnapshot:
    def __init__(self, doc_id: str, data: Optional[dict]) -> None:
        self.id = doc_id
        self._data = data

    @property
    def exists(self) -> bool:
        return self._data is not None

    def to_dict(self) -> Optional[dict]:
        return copy.deepcopy(self._data)


class FakeDocumentRef:
    def __init__(self, db: "FakeFirestore", collection: str, doc_id: str) -> None:
        self._db = db
        self._collection = collection
        self.id = doc_id

    @property
    def _docs(self) -> dict:
        return self._db.data.setdefault(self._collection, {})

    def set(self, data: dict) -> None:
        self._db.check("write")
        self._docs[self.id] = copy.deepcopy(data)

    def get(self) -> FakeSnapshot:
        self._db.check("read")
        return FakeSnapshot(self.id, self._docs.get(self.id))

    def delete(self) -> None:
        self._db.check("delete")
        self._docs.pop(self.id, None)


class FakeQuery:
    def __init__(self, db: "FakeFirestore", collection: str, field_filter) -> None:
        self._db = db
        self._collection = collection
        self._filter = field_filter

    def stream(self):
        self._db.check("read")
        docs = self._db.data.get(self._collection, {})
        for doc_id, data in list(docs.items()):
            if data.get(self._filter.field_path) == self._filter.value:
                yield FakeSnapshot(doc_id, data)


class FakeCollection:
    def __init__(self, db: "FakeFirestore", name: str) -> None:
        self._db = db
        self._name = name

    def document(self, doc_id: str) -> FakeDocumentRef:
        return FakeDocumentRef(self._db, self._name, doc_id)

    def where(self, filter=None) -> FakeQuery:
        return FakeQuery(self._db, self._name, filter)


class FakeBatch:
    def __init__(self, db: "FakeFirestore") -> None:
        self._db = db
        self._writes: list[tuple[FakeDocumentRef, dict]] = []

    def set(self, ref: FakeDocumentRef, data: dict) -> None:
        self._writes.append((ref, data))

    def commit(self) -> None:
        self._db.check("write")
        self._db.commits += 1
        for ref, data in self._writes:
            self._db.data.setdefault(ref._collection, {})[ref.id] = copy.deepcopy(data)


class FakeFirestore:
    """In-memory Firestore client with switchable failures."""

    project = "test-project"

    def __init__(self) -> None:
        self.data: dict[str, dict[str, dict]] = {}
        self.failing: set[str] = set()
        self.error_type: type[Exception] = google_exceptions.ServiceUnavailable
        self.commits = 0

    def check(self, operation: str) -> None:
        if operation in self.failing:
            raise self.error_type(f"{operation} unavailable")

    def collection(self, name: str) -> FakeCollection:
        return FakeCollection(self, name)

    def batch(self) -> FakeBatch:
        return FakeBatch(self)


@pytest.fixture
def firestore_client() -> FakeFirestore:
    return FakeFirestore()


@pytest.fixture
def local_store(tmp_path) -> LocalScriptStore:
    return LocalScriptStore(tmp_path / "guest_scripts.yaml")


@pytest.fixture
def remote_store(firestore_client) -> FirestoreScriptStore:
    return FirestoreScriptStore(client=firestore_client, collection="scripts")


@pytest.fixture
def gateway(local_store, remote_store) -> PersistenceGateway:
    return PersistenceGateway(local=local_store, remote=remote_store)
