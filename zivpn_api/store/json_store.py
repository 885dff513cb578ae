"""
JSON file stores for the VPN server's auth config and the user registry.
Each load reads the whole file, each save rewrites it after keeping a
.bak copy of the previous content.
"""
import os
import json
import shutil
import logging
from typing import Any, List

from zivpn_api.errors import ConfigUnreadable, RegistryUnreadable, WriteFailed
from zivpn_api.store.models import AuthConfig, UserRecord

INDENT = 2


class JsonFile:
    """
    Whole-file JSON read/write
    """

    def __init__(self, path: str):
        self.path = path
        self.logger = logging.getLogger("zivpn.store")

    def read(self) -> Any:
        with open(self.path, 'r') as f:
            return json.load(f)

    def write(self, data: Any) -> None:
        """
        Overwrite the file with data

        Raises:
            WriteFailed: On any I/O error
        """
        try:
            if os.path.exists(self.path):
                backup_path = f"{self.path}.bak"
                shutil.copy2(self.path, backup_path)
                self.logger.debug(f"Created backup of {self.path} at {backup_path}")

            with open(self.path, 'w') as f:
                json.dump(data, f, indent=INDENT)
                f.write("\n")

        except OSError as e:
            self.logger.error(f"Failed to write {self.path}: {e}")
            raise WriteFailed(f"{self.path}: {e}") from e

        self.logger.debug(f"Saved {self.path}")


class AuthConfigFile(JsonFile):
    """
    The VPN server's config.json
    """

    def load(self) -> AuthConfig:
        """
        Load the auth config

        Raises:
            ConfigUnreadable: If the file is missing, unreadable or not a JSON object
        """
        try:
            data = self.read()
        except (OSError, ValueError) as e:
            self.logger.error(f"Failed to read ZiVPN config {self.path}: {e}")
            raise ConfigUnreadable(f"{self.path}: {e}") from e

        if not isinstance(data, dict):
            self.logger.error(f"ZiVPN config {self.path} is not a JSON object")
            raise ConfigUnreadable(f"{self.path}: top level is {type(data).__name__}")

        return AuthConfig(data)

    def save(self, config: AuthConfig) -> None:
        self.write(config.to_dict())


class UserRegistryFile(JsonFile):
    """
    The user registry (users.json), a JSON array of user records
    """

    def load(self) -> List[UserRecord]:
        """
        Load all user records

        A missing or empty registry is an empty list.

        Raises:
            RegistryUnreadable: If the file exists but cannot be decoded
        """
        try:
            with open(self.path, 'r') as f:
                raw = f.read()
        except FileNotFoundError:
            return []
        except OSError as e:
            self.logger.error(f"Failed to read user database {self.path}: {e}")
            raise RegistryUnreadable(f"{self.path}: {e}") from e

        if not raw.strip():
            return []

        try:
            data = json.loads(raw)
        except ValueError as e:
            self.logger.error(f"User database {self.path} is corrupt: {e}")
            raise RegistryUnreadable(f"{self.path}: {e}") from e

        if data is None:
            return []
        if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
            self.logger.error(f"User database {self.path} is not a list of records")
            raise RegistryUnreadable(f"{self.path}: unexpected layout")

        return [UserRecord.from_dict(item) for item in data]

    def save(self, users: List[UserRecord]) -> None:
        self.write([user.to_dict() for user in users])
