"""
User management for the ZiVPN server.
Keeps the server's accepted password list (config.json) and the user
registry (users.json) in step, and restarts the server when the accepted
set changes.
"""
import copy
import logging
import threading
from datetime import date, timedelta
from typing import Callable, Dict, List, Optional

from zivpn_api.errors import BadRequest, UserExists, WriteFailed
from zivpn_api.platform import ServiceController, RestartResult
from zivpn_api.store import AuthConfig, AuthConfigFile, UserRecord, UserRegistryFile, format_date


class UserManager:
    """
    The only writer of the auth config and the user registry

    Every operation runs under one lock: both files are loaded, changed
    and saved, and the service restarted, before the next operation starts.
    """

    def __init__(self, auth_config: AuthConfigFile, registry: UserRegistryFile,
                 service: Optional[ServiceController] = None,
                 today: Callable[[], date] = date.today):
        """
        Initialize the user manager

        Args:
            auth_config: Store for the VPN server's config.json
            registry: Store for users.json
            service: Controller used to apply credential changes
            today: Returns the current calendar date
        """
        self.auth_config = auth_config
        self.registry = registry
        self.service = service or ServiceController()
        self.today = today
        self.lock = threading.Lock()
        self.logger = logging.getLogger("zivpn.users")

    def _expiration(self, base: date, days: int) -> str:
        try:
            return format_date(base + timedelta(days=days))
        except OverflowError as e:
            raise BadRequest(f"days out of range: {days}") from e

    def _apply_changes(self) -> RestartResult:
        result = self.service.restart()
        if not result.success:
            self.logger.warning(f"Stores updated but service restart failed: {result.message}")
        return result

    def _restore_auth_config(self, data: Dict) -> None:
        try:
            self.auth_config.save(AuthConfig(data))
            self.logger.warning("Restored ZiVPN config after user database write failure")
        except WriteFailed:
            self.logger.critical("Could not restore ZiVPN config, config and user database are out of sync")

    def create_user(self, password: str, days: int, ip_limit: int = 0) -> Dict[str, str]:
        """
        Provision a new credential

        Args:
            password: The credential (also the user's identifier)
            days: Days from today until expiration (zero or negative allowed)
            ip_limit: Maximum concurrent client addresses, recorded in the registry

        Returns:
            Dict with the password and its expiration date

        Raises:
            UserExists: If the password is already registered
            ConfigUnreadable: If config.json cannot be read
            RegistryUnreadable: If users.json cannot be read
            WriteFailed: If either file cannot be written
        """
        with self.lock:
            users = self.registry.load()
            if any(user.password == password for user in users):
                self.logger.warning(f"Create rejected: user '{password}' already exists")
                raise UserExists(password)

            expired = self._expiration(self.today(), days)

            config = self.auth_config.load()
            previous = copy.deepcopy(config.to_dict())
            config.add_password(password)
            self.auth_config.save(config)

            users.append(UserRecord(password=password, expired=expired, status="active",
                                    ip_limit=ip_limit))
            try:
                self.registry.save(users)
            except WriteFailed:
                self._restore_auth_config(previous)
                raise

            self._apply_changes()

        self.logger.info(f"Created user '{password}' expiring {expired} (ip_limit={ip_limit})")
        return {"password": password, "expired": expired}

    def delete_user(self, password: str) -> bool:
        """
        Remove every entry for a password from both stores

        Deleting an unknown password changes nothing and still succeeds.

        Returns:
            True if anything was removed, False otherwise
        """
        with self.lock:
            config = self.auth_config.load()
            previous = copy.deepcopy(config.to_dict())
            removed = config.remove_password(password)

            users = self.registry.load()
            remaining = [user for user in users if user.password != password]

            if not removed and len(remaining) == len(users):
                self.logger.info(f"Delete of unknown user '{password}', nothing to do")
                return False

            if removed:
                self.auth_config.save(config)

            if len(remaining) != len(users):
                try:
                    self.registry.save(remaining)
                except WriteFailed:
                    if removed:
                        self._restore_auth_config(previous)
                    raise

            self._apply_changes()

        self.logger.info(f"Deleted user '{password}' ({removed} config entries, "
                         f"{len(users) - len(remaining)} records)")
        return True

    def renew_user(self, password: str, days: int) -> Dict[str, str]:
        """
        Extend a user's expiration

        The extension starts from the later of today and the current
        expiration. The accepted password set is unchanged, so the
        service is not restarted.

        Returns:
            Dict with the new expiration, or an empty expiration if the
            password is not registered
        """
        with self.lock:
            users = self.registry.load()

            for user in users:
                if user.password != password:
                    continue

                today = self.today()
                current = user.expiration
                if current is None:
                    self.logger.warning(f"User '{password}' has invalid expiration {user.expired!r}, "
                                        f"renewing from today")
                base = current if current is not None and current > today else today

                user.expired = self._expiration(base, days)
                self.registry.save(users)

                self.logger.info(f"Renewed user '{password}' until {user.expired}")
                return {"expired": user.expired}

        self.logger.warning(f"Renew of unknown user '{password}', nothing changed")
        return {"expired": ""}

    def list_users(self) -> List[UserRecord]:
        """
        Get all registered users

        Returns:
            Every record in the registry, in file order
        """
        with self.lock:
            return self.registry.load()
