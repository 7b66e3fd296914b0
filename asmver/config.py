from typing import List, Optional
import threading

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_OUTPUT = "json"
DEFAULT_MARKER_TYPE = "GitVersionInformation"
DEFAULT_MARKER_FIELDS = ["NuGetVersion", "NuGetVersionV2"]


class AppConfig(BaseSettings):
    prefer_product_version: bool = False
    prefer_file_version: bool = False
    allow_partial: bool = False
    log_level: str = DEFAULT_LOG_LEVEL
    output: str = DEFAULT_OUTPUT
    marker_type: str = DEFAULT_MARKER_TYPE
    marker_fields: List[str] = Field(default_factory=lambda: list(DEFAULT_MARKER_FIELDS))

    model_config = SettingsConfigDict(
        env_prefix="ASMVER_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )


# Global accessor for configuration loaded once and cached
_APP_CONFIG: Optional[AppConfig] = None
_APP_CONFIG_LOCK = threading.Lock()


def get_app_config(reload: bool = False) -> AppConfig:
    global _APP_CONFIG
    if reload:
        with _APP_CONFIG_LOCK:
            _APP_CONFIG = AppConfig()
            return _APP_CONFIG
    if _APP_CONFIG is None:
        with _APP_CONFIG_LOCK:
            if _APP_CONFIG is None:
                _APP_CONFIG = AppConfig()
    return _APP_CONFIG
