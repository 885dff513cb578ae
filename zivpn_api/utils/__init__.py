"""
Utility modules for the ZiVPN user API.
Includes settings and logging setup.
"""

from zivpn_api.utils.config import ConfigManager, DEFAULT_PORT
from zivpn_api.utils.logging_setup import setup_logging

__all__ = [
    'ConfigManager',
    'DEFAULT_PORT',
    'setup_logging'
]
