"""Configuration management using pydantic-settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    database_path: str = "./data/jellyfish.db"
    api_v2_prefix: str = "/api/v2"
    graphql_path: str = "/graphql"
    cors_origins: list[str] = ["http://localhost:9000"]
    log_level: str = "INFO"

    # JWT Configuration
    jwt_secret_key: str = "change-me-in-production-use-env-var"
    session_expiry_days: int = 7

    # Password for the built-in user-admin card.
    # Left unset, the admin account cannot log in over HTTP.
    admin_password: str | None = None

    # Bcrypt work factor (higher = more secure but slower)
    # For tests, use 4 for faster execution while maintaining functionality
    bcrypt_work_factor: int = 12

    model_config = SettingsConfigDict(
        env_prefix="JF_",
        env_file=".env",
        case_sensitive=False
    )


settings = Settings()
