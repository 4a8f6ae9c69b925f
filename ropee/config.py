"""Configuration management using pydantic-settings."""

from pathlib import Path
from typing import Any, Literal, Tuple, Type

import yaml
from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)


def load_yaml_config(config_path: Path | None = None) -> dict[str, Any]:
    """
    Load configuration from YAML file.

    Priority:
    1. Explicitly provided config_path
    2. ~/.ropee/config.yaml (default location)
    3. Empty dict if no file exists

    Args:
        config_path: Optional path to config file

    Returns:
        Dictionary of configuration values (flattened from nested YAML)
    """
    if config_path is None:
        config_path = Path.home() / ".ropee" / "config.yaml"

    if not config_path.exists():
        return {}

    try:
        with open(config_path) as f:
            yaml_data = yaml.safe_load(f) or {}

        flattened = {}

        if "splunk" in yaml_data:
            splunk = yaml_data["splunk"]
            if "url" in splunk:
                flattened["splunk_url"] = splunk["url"]
            if "hec_url" in splunk:
                flattened["splunk_hec_url"] = splunk["hec_url"]
            if "hec_token" in splunk:
                flattened["splunk_hec_token"] = splunk["hec_token"]
            if "index" in splunk:
                flattened["splunk_metrics_index"] = splunk["index"]
            if "sourcetype" in splunk:
                flattened["splunk_metrics_sourcetype"] = splunk["sourcetype"]
            if "verify_tls" in splunk:
                flattened["verify_tls"] = splunk["verify_tls"]

        if "server" in yaml_data:
            server = yaml_data["server"]
            if "listen_addr" in server:
                flattened["listen_addr"] = server["listen_addr"]
            if "timeout_seconds" in server:
                flattened["timeout_seconds"] = server["timeout_seconds"]
            if "backend" in server:
                flattened["backend"] = server["backend"]

        if "logging" in yaml_data:
            logging = yaml_data["logging"]
            if "file_path" in logging:
                flattened["log_file_path"] = logging["file_path"]
            if "debug" in logging:
                flattened["debug"] = logging["debug"]

        return flattened

    except Exception as e:
        import warnings

        warnings.warn(f"Failed to load config from {config_path}: {e}")
        return {}


_config_path: Path | None = None


class YamlSettingsSource(PydanticBaseSettingsSource):
    """
    Custom settings source that loads configuration from YAML file.

    This allows YAML config to be loaded with proper priority in the settings chain.
    """

    def get_field_value(self, field: Any, field_name: str) -> Tuple[Any, str, bool]:
        """Not used since we override __call__."""
        return None, field_name, False

    def __call__(self) -> dict[str, Any]:
        """Load configuration from YAML file."""
        return load_yaml_config(_config_path)


class Settings(BaseSettings):
    """
    ropee configuration settings.

    All settings are process-wide and fixed at startup.

    Configuration priority (highest to lowest):
    1. Environment variables (e.g., ROPEE_TIMEOUT_SECONDS=30)
    2. YAML configuration file (~/.ropee/config.yaml)
    3. Default values defined in this class
    """

    model_config = SettingsConfigDict(
        env_prefix="ROPEE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    splunk_url: str = Field(
        default="https://127.0.0.1:8089",
        description="Splunk management URL used for searches",
    )
    splunk_hec_url: str = Field(
        default="https://127.0.0.1:8088",
        description="Splunk HTTP event collector URL",
    )
    splunk_hec_token: str = Field(
        default="",
        description="Splunk HTTP event collector token",
    )
    splunk_metrics_index: str = Field(default="*", description="Index name")
    splunk_metrics_sourcetype: str = Field(
        default="prometheus_metrics",
        description="Sourcetype label for Prometheus samples",
    )
    verify_tls: bool = Field(
        default=True,
        description="Verify TLS certificates of the Splunk endpoints",
    )

    backend: Literal["splunk", "memory"] = Field(
        default="splunk",
        description="Backend store implementation",
    )
    timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Backend call timeout in seconds",
    )
    listen_addr: str = Field(
        default="127.0.0.1:9970",
        description="Address the gateway listens on (host:port)",
    )

    log_file_path: str = Field(
        default="/var/log",
        description="Directory for ropee.log, or '-' for stdout",
    )
    debug: bool = Field(default=False, description="Debug mode")

    @field_validator("listen_addr")
    @classmethod
    def validate_listen_addr(cls, v: str) -> str:
        """Ensure the listen address has a host:port form with a valid port."""
        host, sep, port = v.rpartition(":")
        if not sep or not port.isdigit() or not 0 < int(port) < 65536:
            raise ValueError(f"listen_addr must be host:port, got {v!r}")
        return v

    @field_validator("splunk_url", "splunk_hec_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize base URLs so paths can be appended."""
        return v.rstrip("/")

    @property
    def listen_host(self) -> str:
        """Host part of listen_addr (empty means all interfaces)."""
        host = self.listen_addr.rpartition(":")[0]
        return host.strip("[]") or "0.0.0.0"

    @property
    def listen_port(self) -> int:
        """Port part of listen_addr."""
        return int(self.listen_addr.rpartition(":")[2])

    @property
    def log_to_stdout(self) -> bool:
        """Check if logs go to stdout instead of a rotated file."""
        return self.log_file_path == "-"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        """
        Customize settings sources priority.

        Priority order (highest to lowest):
        1. Explicit kwargs (init_settings) - for testing and programmatic config
        2. Environment variables
        3. YAML configuration file
        4. .env file
        5. Field defaults
        """
        return (
            init_settings,
            env_settings,
            YamlSettingsSource(settings_cls),
            dotenv_settings,
        )


_settings: Settings | None = None


def get_settings(config_path: Path | None = None, reload: bool = False) -> Settings:
    """
    Get global settings instance.

    Configuration loading order (highest to lowest priority):
    1. Environment variables (e.g., ROPEE_LISTEN_ADDR=0.0.0.0:9970)
    2. YAML configuration file (~/.ropee/config.yaml)
    3. .env file
    4. Default values defined in Settings class

    Args:
        config_path: Optional path to YAML config file (defaults to ~/.ropee/config.yaml)
        reload: If True, force reload settings (useful for testing)

    Returns:
        Settings instance with merged configuration
    """
    global _settings, _config_path
    if _settings is None or reload:
        _config_path = config_path

        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings singleton (useful for testing)."""
    global _settings, _config_path
    _settings = None
    _config_path = None
