"""Script persistence: local guest store, Firestore store and the gateway."""

from .base import ScriptStore, sort_newest_first
from .local import LocalScriptStore
from .firestore import FirestoreScriptStore
from .gateway import PersistenceGateway

__all__ = [
    "ScriptStore",
    "sort_newest_first",
    "LocalScriptStore",
    "FirestoreScriptStore",
    "PersistenceGateway",
]
