from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Supabase configuration
    SUPABASE_URL: str | None = None
    SUPABASE_KEY: str | None = None
    JWT_SECRET: str | None = None

    # Application
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: list[str] = ["*"]

    # Phone number rendering
    PHONE_MASK_CHAR: str = "•"
    HIDDEN_PHONE_LENGTH: int = 10

    # Extra insert attempts when replacing a role's grants leaves it empty
    ROLE_PERMISSION_INSERT_RETRIES: int = 1

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )


settings = Settings()
