from __future__ import annotations

from fastapi import Request
from pydantic import model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # HTTP
    port: int = 3000
    base_url: str = ""

    # Google OpenID Connect
    google_client_id: str = ""
    google_client_secret: str = ""

    # Sessions
    session_secret: str = "set_the_code_on_fire_and_watch_it_burn"  # demo-only fallback
    session_cookie_name: str = "oidc_demo_session"
    session_ttl_hours: int = 24
    cookie_secure: bool | None = None

    # Database
    database_path: str = "./data/oidc_demo.db"

    # Logging
    log_level: str = "info"

    # "development" or "production"; production never exposes /dev-login
    app_env: str = "development"
    enable_dev_login: bool = False

    @model_validator(mode="after")
    def _derive_urls(self) -> "Settings":
        if not self.base_url:
            self.base_url = f"http://localhost:{self.port}"
        self.base_url = self.base_url.rstrip("/")
        if self.cookie_secure is None:
            self.cookie_secure = not self.base_url.startswith("http://")
        return self

    @property
    def callback_url(self) -> str:
        return f"{self.base_url}/auth/google/callback"

    @property
    def dev_login_enabled(self) -> bool:
        return self.enable_dev_login and self.app_env != "production"

    @property
    def session_max_age(self) -> int:
        return self.session_ttl_hours * 3600

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()


def get_settings(request: Request) -> Settings:
    """FastAPI dependency: the settings the app was built with."""
    return request.app.state.settings
