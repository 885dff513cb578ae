"""
Persistence for the ZiVPN auth config and user registry.
"""

from zivpn_api.store.models import AuthConfig, UserRecord, format_date, parse_date
from zivpn_api.store.json_store import AuthConfigFile, UserRegistryFile

__all__ = [
    'AuthConfig',
    'UserRecord',
    'AuthConfigFile',
    'UserRegistryFile',
    'format_date',
    'parse_date'
]
