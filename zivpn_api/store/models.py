"""
Records kept in the two JSON stores.
"""
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, Any, List, Optional

DATE_FORMAT = "%Y-%m-%d"


def format_date(value: date) -> str:
    return value.strftime(DATE_FORMAT)


def parse_date(value: str) -> Optional[date]:
    """
    Parse a YYYY-MM-DD date

    Returns:
        The date, or None if the value is not a valid date string
    """
    try:
        return datetime.strptime(value, DATE_FORMAT).date()
    except (TypeError, ValueError):
        return None


class AuthConfig:
    """
    The VPN server's config.json

    Only auth.config (the accepted password list) is interpreted; every
    other key is written back exactly as it was read.
    """

    def __init__(self, data: Dict[str, Any]):
        self.data = data

    @property
    def passwords(self) -> List[str]:
        auth = self.data.get("auth")
        if not isinstance(auth, dict):
            return []
        return list(auth.get("config") or [])

    @passwords.setter
    def passwords(self, values: List[str]) -> None:
        auth = self.data.get("auth")
        if not isinstance(auth, dict):
            auth = {}
            self.data["auth"] = auth
        auth["config"] = list(values)

    def add_password(self, password: str) -> None:
        self.passwords = self.passwords + [password]

    def remove_password(self, password: str) -> int:
        """
        Remove every entry equal to password

        Returns:
            Number of entries removed
        """
        before = self.passwords
        self.passwords = [p for p in before if p != password]
        return len(before) - len(self.passwords)

    def to_dict(self) -> Dict[str, Any]:
        return self.data


@dataclass
class UserRecord:
    """One provisioned credential in users.json"""
    password: str
    expired: str
    status: str = "active"
    ip_limit: int = 0
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def expiration(self) -> Optional[date]:
        return parse_date(self.expired)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserRecord":
        known = ("password", "expired", "status", "ip_limit")
        ip_limit = data.get("ip_limit", 0)
        return cls(
            password=str(data.get("password", "")),
            expired=str(data.get("expired", "")),
            status=str(data.get("status", "")),
            ip_limit=ip_limit if isinstance(ip_limit, int) and not isinstance(ip_limit, bool) else 0,
            extra={k: v for k, v in data.items() if k not in known},
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "password": self.password,
            "expired": self.expired,
            "status": self.status,
            "ip_limit": self.ip_limit,
        }
        for key, value in self.extra.items():
            data.setdefault(key, value)
        return data
