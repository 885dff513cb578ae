"""
Tests for the zivpn-api entry point.
"""
import os
import json
import tempfile
from unittest import mock

from zivpn_api import main as entry
from zivpn_api.platform import NullServiceController, ServiceController
from zivpn_api.utils import ConfigManager

CLEAN_ENV = {"PATH": os.environ.get("PATH", "")}


def _settings(tmp, **service):
    path = os.path.join(tmp, "settings.json")
    with open(path, 'w') as f:
        json.dump({
            "paths": {
                "config_file": os.path.join(tmp, "config.json"),
                "user_db": os.path.join(tmp, "users.json"),
                "api_key_file": os.path.join(tmp, "apikey"),
                "port_file": os.path.join(tmp, "api_port"),
            },
            "service": service,
        }, f)
    return path


def test_build_manager():
    with tempfile.TemporaryDirectory() as tmp:
        with mock.patch.dict(os.environ, CLEAN_ENV, clear=True):
            config = ConfigManager(_settings(tmp, name="zivpn-test.service", restart_timeout=7))

        manager = entry.build_manager(config)

    assert isinstance(manager.service, ServiceController)
    assert manager.service.service_name == "zivpn-test.service"
    assert manager.service.timeout == 7
    assert manager.auth_config.path == os.path.join(tmp, "config.json")
    assert manager.registry.path == os.path.join(tmp, "users.json")


def test_build_manager_with_restart_disabled():
    with tempfile.TemporaryDirectory() as tmp:
        with mock.patch.dict(os.environ, CLEAN_ENV, clear=True):
            config = ConfigManager(_settings(tmp, restart_enabled=False))

    assert isinstance(entry.build_manager(config).service, NullServiceController)


def test_main_requires_api_key():
    with tempfile.TemporaryDirectory() as tmp:
        settings = _settings(tmp)
        with mock.patch.dict(os.environ, CLEAN_ENV, clear=True), \
                mock.patch.object(entry, "start_web_server") as serve:
            assert entry.main(["--config", settings]) == 2

    serve.assert_not_called()


def test_main_rejects_non_boolean_restart_switch():
    with tempfile.TemporaryDirectory() as tmp:
        settings = _settings(tmp, restart_enabled="false")
        with mock.patch.dict(os.environ, dict(CLEAN_ENV, ZIVPN_API_KEY="env-key"), clear=True), \
                mock.patch.object(entry, "start_web_server") as serve:
            assert entry.main(["--config", settings]) == 2

    serve.assert_not_called()


def test_main_serves_on_configured_port():
    with tempfile.TemporaryDirectory() as tmp:
        settings = _settings(tmp)
        with open(os.path.join(tmp, "apikey"), 'w') as f:
            f.write("key-from-file\n")
        with open(os.path.join(tmp, "api_port"), 'w') as f:
            f.write("9191\n")

        with mock.patch.dict(os.environ, CLEAN_ENV, clear=True), \
                mock.patch.object(entry, "start_web_server") as serve:
            assert entry.main(["--config", settings, "--host", "127.0.0.1"]) == 0

    app, host, port = serve.call_args[0]
    assert (host, port) == ("127.0.0.1", 9191)
    assert app.config["API_KEY"] == "key-from-file"


def test_main_port_flag_wins():
    with tempfile.TemporaryDirectory() as tmp:
        settings = _settings(tmp)
        with mock.patch.dict(os.environ, dict(CLEAN_ENV, ZIVPN_API_KEY="env-key"), clear=True), \
                mock.patch.object(entry, "start_web_server") as serve:
            assert entry.main(["--config", settings, "--port", "7070"]) == 0

    app, host, port = serve.call_args[0]
    assert (host, port) == ("0.0.0.0", 7070)
    assert app.config["API_KEY"] == "env-key"
