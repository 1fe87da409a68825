"""AppState — one client's transport, storage, navigation and stores, wired together.

Front ends receive an AppState and go through its stores; nothing else
mutates store contents.
"""

from __future__ import annotations

from dataclasses import dataclass

from dotask.config import Settings, settings as default_settings
from dotask.graphql.client import GraphQLClient
from dotask.navigation import Navigator
from dotask.storage import ClientStorage
from dotask.stores.auth import AuthStore
from dotask.stores.offline import OfflineTaskStore
from dotask.stores.unified import TaskStore


@dataclass
class AppState:
    storage: ClientStorage
    client: GraphQLClient
    navigator: Navigator
    auth: AuthStore
    store: TaskStore
    offline: OfflineTaskStore


def create_app_state(
    config: Settings | None = None,
    storage: ClientStorage | None = None,
) -> AppState:
    """Build an AppState from settings (env / .env by default)."""
    cfg = config or default_settings
    storage = storage if storage is not None else ClientStorage(cfg.storage_path or None)
    client = GraphQLClient(cfg.graphql_url, storage=storage, timeout=cfg.request_timeout)
    navigator = Navigator()
    auth = AuthStore(
        client,
        navigator,
        logout_url=cfg.logout_url,
        home_route=cfg.home_route,
        login_route=cfg.login_route,
    )
    return AppState(
        storage=storage,
        client=client,
        navigator=navigator,
        auth=auth,
        store=TaskStore(client, auth),
        offline=OfflineTaskStore(storage),
    )
