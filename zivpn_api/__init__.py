"""
ZiVPN user management API.
Creates, renews, deletes and lists ZiVPN credentials over HTTP.
"""

__version__ = "1.0.0"
