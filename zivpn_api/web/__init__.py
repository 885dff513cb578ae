"""
HTTP interface for the ZiVPN user API.
"""

from zivpn_api.web.app import create_app, start_web_server

__all__ = ['create_app', 'start_web_server']
