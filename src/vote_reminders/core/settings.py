"""Application settings and configuration.

This module defines all configuration options for the vote reminders service.
Settings are loaded from environment variables with sensible defaults and can
be overridden programmatically by field name.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

MILLISECONDS_PER_SECOND = 1000


class Settings(BaseSettings):
    """Settings loaded from environment variables.

    Durations follow the webhook SDK conventions: reminder thresholds are in
    seconds, sweep intervals are in milliseconds.
    """

    # Webhook listener
    webhook_path: str = Field(default="/topggwebhook", alias="WEBHOOK_PATH")
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=3000, alias="PORT")
    authorization: str | None = Field(default=None, alias="TOPGG_AUTHORIZATION")

    # Production store
    db_path: str = Field(default="./voters.db", alias="DB_PATH")
    reminder_time: int = Field(default=43200, ge=0, alias="REMINDER_TIME")
    interval: int = Field(default=10000, gt=0, alias="INTERVAL")

    # Test store (votes sent with the "send test" button)
    test_db_path: str = Field(default=":memory:", alias="TEST_DB_PATH")
    test_reminder_time: int = Field(default=30, ge=0, alias="TEST_REMINDER_TIME")
    test_interval: int | None = Field(default=None, gt=0, alias="TEST_INTERVAL")

    reminders_opt_in_default: bool = Field(default=False, alias="REMINDERS_OPT_IN_DEFAULT")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        populate_by_name=True,
        extra="ignore",
    )

    @property
    def interval_seconds(self) -> float:
        """Return the production sweep period in seconds."""
        return self.interval / MILLISECONDS_PER_SECOND

    @property
    def test_interval_seconds(self) -> float:
        """Return the test sweep period in seconds.

        Falls back to the production period when no test interval is set.
        """
        interval = self.test_interval if self.test_interval is not None else self.interval
        return interval / MILLISECONDS_PER_SECOND


settings = Settings()
