"""Configuration via environment variables.

Database variables follow the individual POSTGRES_* pattern; USE_SQLITE
switches to the zero-install SQLite backend.
"""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # --- Database ---
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_db: str = "postgres"
    postgres_user: str = "postgres"
    postgres_password: str = ""

    # SQLite fallback for local dev (set USE_SQLITE=true)
    use_sqlite: bool = False
    sqlite_path: str = "grants.db"

    @property
    def database_url(self) -> str:
        if self.use_sqlite:
            return f"sqlite:///{self.sqlite_path}"
        return (
            f"postgresql://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    # --- Uploads ---
    upload_dir: str = "uploads/grant-imports"

    # --- Staging ---
    staging_ttl_seconds: int = 3600  # one hour
    preview_rows: int = 5

    # --- Users ---
    password_length: int = 12
    bcrypt_log_rounds: int = 12

    log_level: str = "INFO"

    model_config = {"env_prefix": ""}
