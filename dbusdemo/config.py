"""Configuration management for DBusDemo."""

from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from ruamel.yaml import YAML

from .notify.models import NotificationRequest

DEFAULT_CONFIG_PATH = Path.home() / ".config/dbusdemo/config.yaml"


class BusConfig(BaseModel):
    """Configuration for the bus connection."""

    bus_type: str = Field(default="session", description="Bus to connect to: session or system")
    address: Optional[str] = Field(default=None, description="Explicit bus address, overrides bus_type")
    call_timeout_ms: Optional[int] = Field(
        default=None,
        gt=0,
        description="Reply timeout in milliseconds, empty to wait indefinitely"
    )
    connect_attempts: int = Field(default=3, ge=1, description="Connection attempts before giving up")

    @field_validator("bus_type")
    @classmethod
    def _known_bus_type(cls, value: str) -> str:
        if value not in ("session", "system"):
            raise ValueError(f"bus_type must be 'session' or 'system', got {value!r}")
        return value


class NotificationDefaults(BaseModel):
    """Notification sent by the demo button and used as CLI defaults."""

    app_name: str = Field(default="app_name", min_length=1, description="Application name shown by the daemon")
    icon: str = Field(default="", description="Icon name or file URI")
    summary: str = Field(default="D-Bus Notification", description="Notification title")
    body: str = Field(default="Hello World Message", description="Notification body text")
    urgency: Optional[int] = Field(default=1, ge=0, le=2, description="Urgency hint: 0 low, 1 normal, 2 critical")
    expire_timeout: int = Field(default=-1, ge=-1, description="Milliseconds, -1 server default, 0 never")
    actions: List[List[str]] = Field(default_factory=list, description="Action [id, label] pairs")

    def to_request(self) -> NotificationRequest:
        """Create a notification request from these defaults."""
        hints = {} if self.urgency is None else {"urgency": self.urgency}
        return NotificationRequest(
            app_name=self.app_name,
            summary=self.summary,
            body=self.body,
            icon=self.icon,
            actions=[tuple(pair) for pair in self.actions],
            hints=hints,
            expire_timeout=self.expire_timeout,
        )


class DemoConfig(BaseModel):
    """Main configuration for DBusDemo."""

    application_id: str = Field(default="org.gtk.example", description="GTK application id")
    log_level: str = Field(default="INFO", description="Logging level")
    log_file: Optional[Path] = Field(default=None, description="Optional log file")

    bus: BusConfig = Field(default_factory=BusConfig)
    notification: NotificationDefaults = Field(default_factory=NotificationDefaults)

    model_config = ConfigDict(validate_assignment=True)

    @property
    def object_path(self) -> str:
        """Object path the application exports, derived from its id."""
        return "/" + self.application_id.replace(".", "/").replace("-", "_")


def load_config(config_path: Optional[Path] = None) -> DemoConfig:
    """Load configuration from file or create default."""

    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    if config_path.exists():
        yaml = YAML(typ="safe")
        with open(config_path, "r") as f:
            data = yaml.load(f) or {}
        return DemoConfig(**data)
    else:
        config = DemoConfig()
        save_config(config, config_path)
        return config


def save_config(config: DemoConfig, config_path: Optional[Path] = None) -> None:
    """Save configuration to file."""

    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    config_path.parent.mkdir(parents=True, exist_ok=True)

    yaml = YAML()
    yaml.default_flow_style = False

    with open(config_path, "w") as f:
        yaml.dump(config.model_dump(mode="json"), f)


def get_config() -> DemoConfig:
    """Get the cached configuration instance."""

    if not hasattr(get_config, "_config"):
        get_config._config = load_config()

    return get_config._config
