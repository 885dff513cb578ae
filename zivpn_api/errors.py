"""
Error types for the ZiVPN user API.
Each error carries the HTTP status and the message shown to API callers.
"""
from typing import Optional


class ZiVPNError(Exception):
    """
    Base class for errors that end up in a response envelope
    """
    status_code = 500
    message = "Internal server error"

    def __init__(self, detail: Optional[str] = None):
        """
        Args:
            detail: Internal detail for logs (never sent to the caller)
        """
        super().__init__(detail or self.message)
        self.detail = detail or self.message


class BadRequest(ZiVPNError):
    status_code = 400
    message = "Invalid request body"


class Unauthorized(ZiVPNError):
    status_code = 401
    message = "Unauthorized"


class MethodNotAllowed(ZiVPNError):
    status_code = 405
    message = "Method not allowed"


class UserExists(ZiVPNError):
    status_code = 409
    message = "User already exists"


class ConfigUnreadable(ZiVPNError):
    """The VPN server's auth config is missing or corrupt"""
    message = "Failed to read ZiVPN config"


class RegistryUnreadable(ZiVPNError):
    """The user registry exists but cannot be decoded"""
    message = "Failed to read user database"


class WriteFailed(ZiVPNError):
    message = "Failed to save changes"


class ConfigError(Exception):
    """Invalid service settings, raised at startup"""
