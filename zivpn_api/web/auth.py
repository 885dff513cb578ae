"""
API key check applied to every request.
"""
import hmac
import logging

from flask import current_app, request

from zivpn_api.errors import Unauthorized

API_KEY_HEADER = "X-API-Key"

logger = logging.getLogger("zivpn.web.auth")


def api_key_matches(provided: str, expected: str) -> bool:
    """
    Compare the provided key with the configured one

    An empty configured key never matches.
    """
    if not expected:
        return False
    return hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))


def require_api_key() -> None:
    """before_request hook: reject requests without the right X-API-Key"""
    provided = request.headers.get(API_KEY_HEADER, "")
    if not api_key_matches(provided, current_app.config.get("API_KEY") or ""):
        logger.warning(f"Rejected {request.method} {request.path} from {request.remote_addr}: "
                       f"{'missing' if not provided else 'invalid'} API key")
        raise Unauthorized(f"bad API key for {request.path}")
