from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = Field(default="Notifier Agent", alias="APP_NAME")
    app_env: Literal["dev", "staging", "prod"] = Field(default="dev", alias="APP_ENV")
    api_prefix: str = Field(default="/api/v1", alias="API_PREFIX")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    api_host: str = Field(default="127.0.0.1", alias="API_HOST")
    api_port: int = Field(default=8787, alias="API_PORT")

    # Deep links are refused by the router unless this is on. With it off the parser
    # still accepts unsigned links, which is an explicit trust decision of the operator.
    deeplink_security: bool = Field(default=False, alias="DEEPLINK_SECURITY")
    deeplink_security_key: str = Field(default="", alias="DEEPLINK_SECURITY_KEY")
    deeplink_token_issuer: str = Field(default="", alias="DEEPLINK_TOKEN_ISSUER")
    deeplink_token_audience: str = Field(default="", alias="DEEPLINK_TOKEN_AUDIENCE")
    deeplink_token_leeway_seconds: int = Field(default=0, alias="DEEPLINK_TOKEN_LEEWAY_SECONDS")

    default_main_button_label: str = Field(default="OK", alias="DEFAULT_MAIN_BUTTON_LABEL")
    default_popup_bar_title: str = Field(default="Notifier", alias="DEFAULT_POPUP_BAR_TITLE")
    default_popup_timeout: int | None = Field(default=None, alias="DEFAULT_POPUP_TIMEOUT")
    default_popup_icon_path: str = Field(default="", alias="DEFAULT_POPUP_ICON_PATH")

    reply_redis_url: str = Field(default="", alias="REPLY_REDIS_URL")
    reply_redis_channel: str = Field(default="notifier:replies", alias="REPLY_REDIS_CHANNEL")

    @property
    def deeplink_public_key(self) -> bytes:
        return self.deeplink_security_key.strip().encode("utf-8")


def load_settings() -> Settings:
    return Settings()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()


settings = get_settings()
