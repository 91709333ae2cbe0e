from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env")

    app_name: str = "CardLedger"
    debug: bool = False
    log_level: str = "INFO"

    # Empty means no store is configured; ingestion still validates
    database_url: str = "postgresql+asyncpg://localhost:5432/cardledger"

    # Which closed enumeration backs Card.category (see models/card.py)
    card_category_scheme: Literal["tcg", "rarity"] = "tcg"

    max_upload_bytes: int = 5 * 1024 * 1024

    cors_allow_origins: list[str] = ["*"]


settings = Settings()


# =============================================================================
# CSV ROW NUMBERING
# =============================================================================

# Offset from 0-based data row index to the row number users see:
# one for the header line, one for 1-based counting.
ROW_NUMBER_OFFSET = 2
