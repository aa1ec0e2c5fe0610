"""Application configuration via environment variables.

Uses pydantic-settings to load config from env vars with PROJECTDESK_ prefix.
No YAML files, no file-based config: just env vars (12-factor app style).

Learn: The settings object is passed explicitly into create_app(), which
builds the token codec and database engine from it. Tests build their own
Settings instead of patching a module global.
"""

from functools import lru_cache

from pydantic import model_validator
from pydantic_settings import BaseSettings

DEFAULT_JWT_SECRET = "change-me-in-production"


class Settings(BaseSettings):
    """All app configuration. Set via PROJECTDESK_* env vars."""

    # Database
    database_url: str = "sqlite+aiosqlite:///./projectdesk.db"
    auto_create_tables: bool = True

    # Auth
    jwt_secret: str = DEFAULT_JWT_SECRET
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60
    bcrypt_rounds: int = 12

    # Server
    environment: str = "development"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8000
    api_prefix: str = "/api"

    # CORS
    cors_origins: list[str] = ["*"]

    model_config = {"env_prefix": "PROJECTDESK_"}

    @model_validator(mode="after")
    def validate_production_settings(self):
        """Ensure sensitive defaults are changed in non-development environments."""
        if (
            self.environment not in ("development", "test")
            and self.jwt_secret == DEFAULT_JWT_SECRET
        ):
            raise ValueError(
                "PROJECTDESK_JWT_SECRET must be set to a secure value in "
                "non-development environments. Generate one with: "
                'python -c "import secrets; print(secrets.token_urlsafe(32))"'
            )
        return self


@lru_cache
def get_settings() -> Settings:
    """Process-wide settings, read from the environment once."""
    return Settings()
