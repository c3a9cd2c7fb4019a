"""Configuration management for SplitLedger."""

from decimal import Decimal
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="SPLIT_LEDGER_",
        case_sensitive=False,
        extra="ignore",
    )

    # Currency all balances and settlements are expressed in
    base_currency: str = "USD"

    # Optional JSON rate table; the built-in table is used when unset
    rates_path: Path | None = None

    # Balances within this distance of zero count as settled
    settlement_epsilon: Decimal = Field(Decimal("0.01"), ge=0)

    # Skip contributions from ids that are not declared group members
    strict_members: bool = False

    def __init__(self, **kwargs):
        """Initialize settings and normalize the currency code."""
        super().__init__(**kwargs)
        self.base_currency = self.base_currency.upper()


def load_settings() -> Settings:
    """Load application settings from environment variables."""
    try:
        return Settings()
    except Exception as e:
        raise ConfigurationError(
            f"Failed to load settings. Check the SPLIT_LEDGER_* variables "
            f"in your environment or .env file.\n"
            f"Error: {e}"
        ) from e
