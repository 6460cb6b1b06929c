from pydantic import ConfigDict, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Database
    database_url: str = "sqlite:///./nodeauth.db"

    # Login phrases
    login_phrase_max_age_ms: int = 900_000  # 15 minutes
    login_phrase_future_skew_ms: int = 0
    message_magic_prefix: str = "\x18Bitcoin Signed Message:\n"

    # Identity allowed to log in with an emergency phrase
    admin_zelid: str | None = None

    # Node tier oracle
    node_tier: str = "basic"
    node_collateral: int = 1000
    tier_oracle_timeout_seconds: float = 5.0

    # DOS / health oracle
    dos_oracle_url: str = "http://127.0.0.1:16127/flux/dosstate"
    dos_oracle_timeout_seconds: float = 5.0

    # Rate Limiting
    rate_limit_phrases: str = "10/minute"
    rate_limit_logins: str = "20/minute"
    trust_proxy_headers: bool = False

    # Cleanup
    cleanup_interval_minutes: int = 15

    # Logging
    log_level: str = "info"
    log_format: str = "console"

    # CORS
    cors_origins: list[str] | str = ["http://localhost:16126", "http://127.0.0.1:16126"]

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        """Parse CORS origins from comma-separated string or list."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v


settings = Settings()
