"""Observable state stores: auth session, server-synced tasks, offline tasks."""

from dotask.stores.auth import AuthState, AuthStore
from dotask.stores.observable import Observable, derived
from dotask.stores.offline import OfflineTaskStore
from dotask.stores.unified import StoreSnapshot, TaskStore

__all__ = [
    "AuthState",
    "AuthStore",
    "Observable",
    "OfflineTaskStore",
    "StoreSnapshot",
    "TaskStore",
    "derived",
]
