"""
User management for the ZiVPN server.
"""

from zivpn_api.users.user_manager import UserManager

__all__ = ['UserManager']
