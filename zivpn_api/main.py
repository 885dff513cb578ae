#!/usr/bin/env python3
"""
Main entry point for the ZiVPN user management API.
Loads settings, sets up logging and serves the HTTP API.
"""
import sys
import argparse
from typing import List, Optional

from zivpn_api.errors import ConfigError
from zivpn_api.platform import NullServiceController, ServiceController
from zivpn_api.store import AuthConfigFile, UserRegistryFile
from zivpn_api.users import UserManager
from zivpn_api.utils import ConfigManager, setup_logging
from zivpn_api.web import create_app, start_web_server


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description='ZiVPN user management API')
    parser.add_argument('--config', help='Path to a JSON settings file')
    parser.add_argument('--host', help='Host to bind to')
    parser.add_argument('--port', type=int, help='Port to bind to (overrides the port file)')
    parser.add_argument('--log-level', help='Logging level')
    parser.add_argument('--log-file', help='Log file path')
    return parser.parse_args(argv)


def build_manager(config: ConfigManager) -> UserManager:
    """
    Create the user manager described by the settings

    Args:
        config: Loaded settings

    Returns:
        UserManager bound to the configured files and service
    """
    service_name = config.get("service.name", "zivpn.service")
    if config.get("service.restart_enabled", True):
        service = ServiceController(service_name, timeout=float(config.get("service.restart_timeout", 30)))
    else:
        service = NullServiceController(service_name)

    return UserManager(
        auth_config=AuthConfigFile(config.get("paths.config_file")),
        registry=UserRegistryFile(config.get("paths.user_db")),
        service=service,
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    try:
        config = ConfigManager(args.config)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    if args.log_level:
        config.set("logging.level", args.log_level)
    if args.log_file:
        config.set("logging.file", args.log_file)

    logger = setup_logging(
        app_name="zivpn",
        log_level=config.get("logging.level", "INFO"),
        log_file=config.get("logging.file"),
        include_thread_info=True
    )

    try:
        api_key = config.read_api_key()
    except ConfigError as e:
        logger.error(str(e))
        return 2

    host = args.host or config.get("server.host", "0.0.0.0")
    port = args.port or config.read_port()

    app = create_app(build_manager(config), api_key)
    start_web_server(app, host, port)
    return 0


if __name__ == "__main__":
    sys.exit(main())
