"""DoTask client configuration — endpoints, storage, cookies."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # GraphQL endpoint
    graphql_url: str = "http://localhost:8080/query"
    request_timeout: float = 10.0

    # Local server (session-cookie logout endpoint)
    logout_url: str = "http://localhost:5173/api/logout"
    cookie_secure: bool = False  # Set True in production with HTTPS

    # Client-side storage (empty = in-memory only)
    storage_path: str = "data/client_storage.json"

    # Routes the navigator redirects to
    home_route: str = "/"
    login_route: str = "/auth/login"

    # CORS (comma-separated origins) for the local server
    cors_origins: str = "http://localhost:5173"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
