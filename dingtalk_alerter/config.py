"""Environment-driven settings for the DingTalk alerter."""

from functools import lru_cache
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_WEBHOOK_URL = "https://oapi.dingtalk.com/robot/send"
DEFAULT_PORT_NUMBER = 8081
DEFAULT_SSL_PORT_NUMBER = 8443


class Settings(BaseSettings):
    """Webhook credentials plus the web UI address used for execution links."""

    token: Optional[str] = Field(default=None, alias="DINGTALK_TOKEN")
    secret: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("DINGTALK_SECRET", "DINGTALK_SIGNATURE"),
    )
    require_signature: bool = Field(default=True, alias="DINGTALK_REQUIRE_SIGNATURE")
    webhook_url: str = Field(default=DEFAULT_WEBHOOK_URL, alias="DINGTALK_WEBHOOK_URL")
    request_timeout: float = Field(default=10.0, alias="DINGTALK_TIMEOUT")

    display_name: str = Field(default="azkaban", alias="ALERT_DISPLAY_NAME")
    hostname: str = Field(
        default="localhost",
        validation_alias=AliasChoices("WEBSERVER_EXTERNAL_HOSTNAME", "WEBSERVER_HOSTNAME"),
    )
    use_ssl: bool = Field(default=True, alias="WEBSERVER_USE_SSL")
    ssl_port: int = Field(
        default=DEFAULT_SSL_PORT_NUMBER,
        validation_alias=AliasChoices("WEBSERVER_EXTERNAL_SSL_PORT", "WEBSERVER_SSL_PORT"),
    )
    port: int = Field(
        default=DEFAULT_PORT_NUMBER,
        validation_alias=AliasChoices("WEBSERVER_EXTERNAL_PORT", "WEBSERVER_PORT"),
    )
    timezone: str = Field(default="UTC", alias="ALERT_TIMEZONE")
    default_project: str = Field(default="default", alias="ALERT_DEFAULT_PROJECT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        return value.upper()

    @property
    def enabled(self) -> bool:
        return bool(self.token)

    @property
    def scheme(self) -> str:
        return "https" if self.use_ssl else "http"

    @property
    def client_port(self) -> int:
        return self.ssl_port if self.use_ssl else self.port


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings once per process."""
    return Settings()
