"""Tests for configuration loading and saving."""

import pytest
from pydantic import ValidationError

from dbusdemo.config import BusConfig, DemoConfig, load_config, save_config


class TestDemoConfig:
    """Test configuration defaults and validation."""

    def test_defaults(self):
        config = DemoConfig()

        assert config.application_id == "org.gtk.example"
        assert config.object_path == "/org/gtk/example"
        assert config.bus.bus_type == "session"
        assert config.bus.call_timeout_ms is None
        assert config.notification.summary == "D-Bus Notification"

    def test_invalid_bus_type(self):
        with pytest.raises(ValidationError):
            BusConfig(bus_type="starter")

    def test_invalid_timeout(self):
        with pytest.raises(ValidationError):
            BusConfig(call_timeout_ms=0)

    def test_assignment_is_validated(self):
        config = DemoConfig()

        with pytest.raises(ValidationError):
            config.bus = {"bus_type": "starter"}
        assert config.bus.bus_type == "session"

    def test_notification_request(self):
        config = DemoConfig()
        config.notification.actions = [["default", "Open"]]

        request = config.notification.to_request()

        assert request.app_name == "app_name"
        assert request.body == "Hello World Message"
        assert request.hints == {"urgency": 1}
        assert request.actions == [("default", "Open")]
        assert request.expire_timeout == -1

    def test_no_urgency_hint(self):
        config = DemoConfig()
        config.notification.urgency = None

        assert config.notification.to_request().hints == {}


class TestConfigFile:
    """Test YAML persistence."""

    def test_save_load(self, tmp_path):
        path = tmp_path / "nested" / "config.yaml"
        config = DemoConfig(application_id="org.example.Demo")
        config.bus.call_timeout_ms = 5000
        config.notification.icon = "dialog-information"

        save_config(config, path)
        loaded = load_config(path)

        assert loaded.application_id == "org.example.Demo"
        assert loaded.object_path == "/org/example/Demo"
        assert loaded.bus.call_timeout_ms == 5000
        assert loaded.notification.icon == "dialog-information"

    def test_missing_file_creates_default(self, tmp_path):
        path = tmp_path / "config.yaml"

        config = load_config(path)

        assert path.exists()
        assert config == DemoConfig()
