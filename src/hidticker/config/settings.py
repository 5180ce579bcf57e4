"""Configuration management for hidticker.

Loads settings from a YAML configuration file with environment variable
overrides (``HIDTICKER_`` prefix, ``__`` for nested keys). Supports .env
files.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from hidticker.domain.models import DeviceIdentity, TickerSpec
from hidticker.errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config/hidticker.yaml")

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
DEFAULT_URL_TEMPLATE = "https://query1.finance.yahoo.com/v8/finance/chart/{symbol}"
DEFAULT_PRICE_PATTERN = r'"regularMarketPrice"\s*:\s*([0-9][0-9,]*(?:\.[0-9]+)?)'

# splitkb.com vendor, Elora product
DEFAULT_VENDOR_ID = 0x8D1D
DEFAULT_PRODUCT_ID = 0x9D9D
# QMK raw HID interface
DEFAULT_USAGE_PAGE = 0xFF60
DEFAULT_USAGE = 0x61


def _default_tickers() -> list[TickerSpec]:
    return [
        TickerSpec(symbol="TSLA", display="TSLA", currency="$"),
        TickerSpec(symbol="VWRL.AS", display="VWRL", currency="$"),
        TickerSpec(symbol="GC=F", display="GOLD", currency="$"),
    ]


def _parse_int(value: object) -> object:
    if isinstance(value, str):
        return int(value, 0)
    return value


class QuotesConfig(BaseModel):
    url_template: str = Field(default=DEFAULT_URL_TEMPLATE)
    price_pattern: str = Field(default=DEFAULT_PRICE_PATTERN)
    user_agent: str = Field(default=DEFAULT_USER_AGENT)
    timeout: float = Field(default=5.0, gt=0)
    tickers: list[TickerSpec] = Field(default_factory=_default_tickers)

    @field_validator("url_template")
    @classmethod
    def _check_placeholder(cls, value: str) -> str:
        if "{symbol}" not in value:
            raise ValueError("url_template must contain a {symbol} placeholder")
        try:
            value.format(symbol="TSLA")
        except (KeyError, IndexError, ValueError) as e:
            raise ValueError(f"url_template may only use the {{symbol}} placeholder: {e!r}") from e
        return value

    @property
    def currencies(self) -> dict[str, str]:
        return {t.label: t.currency for t in self.tickers}


class DeviceConfig(BaseModel):
    vendor_id: int = Field(default=DEFAULT_VENDOR_ID, ge=0, le=0xFFFF)
    product_id: int = Field(default=DEFAULT_PRODUCT_ID, ge=0, le=0xFFFF)
    usage_page: int | None = Field(default=DEFAULT_USAGE_PAGE, ge=0, le=0xFFFF)
    usage: int | None = Field(default=DEFAULT_USAGE, ge=0, le=0xFFFF)
    report_size: int = Field(default=32, gt=0, le=1024)
    report_id: int = Field(default=0, ge=0, le=0xFF)
    write_timeout: float = Field(default=2.0, gt=0)

    @field_validator(
        "vendor_id", "product_id", "usage_page", "usage", "report_id", mode="before"
    )
    @classmethod
    def _parse_hex(cls, value: object) -> object:
        return _parse_int(value)

    @property
    def identity(self) -> DeviceIdentity:
        return DeviceIdentity(
            vendor_id=self.vendor_id,
            product_id=self.product_id,
            usage_page=self.usage_page,
            usage=self.usage,
        )


class RefreshConfig(BaseModel):
    interval: float = Field(default=60.0, gt=0, description="Seconds between cycles")
    separator: str = Field(default="\n")


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO")
    format: str = Field(
        default="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    file: str | None = Field(default=None)


class Settings(BaseSettings):
    """Root configuration for hidticker.

    Loads from YAML file and supports environment variable overrides.
    Reads .env files automatically.
    """

    model_config = {
        "env_prefix": "HIDTICKER_",
        "env_nested_delimiter": "__",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    quotes: QuotesConfig = Field(default_factory=QuotesConfig)
    device: DeviceConfig = Field(default_factory=DeviceConfig)
    refresh: RefreshConfig = Field(default_factory=RefreshConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # YAML values arrive as init kwargs and must lose to the environment
        return env_settings, dotenv_settings, init_settings, file_secret_settings


def load_settings(config_path: Path | str | None = None) -> Settings:
    """Load settings from YAML + .env + environment variables.

    Priority: env vars > .env file > YAML file > defaults

    Raises:
        ConfigError: If the YAML file cannot be parsed or is not a mapping.
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

    yaml_data: dict = {}
    if path.exists():
        try:
            with open(path) as f:
                loaded = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Cannot parse config file {path}: {e}") from e
        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")
        yaml_data = loaded
        logger.info("Loaded configuration from %s", path)
    else:
        logger.warning("Config file %s not found, using defaults + env vars", path)

    return Settings(**yaml_data)
