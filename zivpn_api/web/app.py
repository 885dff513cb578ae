"""
HTTP API for managing ZiVPN users.
Every response is a JSON envelope: {"success": bool, "message": str, "data": ...}.
"""
import logging
from typing import Any, Dict, Optional

from flask import Blueprint, Flask, current_app, jsonify, request
from werkzeug.exceptions import HTTPException

from zivpn_api.errors import BadRequest, MethodNotAllowed, ZiVPNError
from zivpn_api.users import UserManager
from zivpn_api.web.auth import require_api_key

logger = logging.getLogger("zivpn.web")

# Methods accepted by the endpoints that do not enforce one
ANY_METHOD = ['GET', 'HEAD', 'POST', 'PUT', 'PATCH', 'DELETE', 'OPTIONS']

_ZERO_VALUES = {str: "", int: 0}

api = Blueprint('api', __name__)


def envelope(success: bool, message: str, data: Any = None, status: int = 200):
    """Build a JSON response in the common envelope"""
    body: Dict[str, Any] = {'success': success, 'message': message}
    if data is not None:
        body['data'] = data
    return jsonify(body), status


def decode_body(**fields: type) -> Dict[str, Any]:
    """
    Decode the request body as a JSON object

    Missing or null fields take their zero value.

    Args:
        fields: Field name -> expected type (str or int)

    Returns:
        Dict with one value per requested field

    Raises:
        BadRequest: If the body is not a JSON object or a field has the wrong type
    """
    payload = request.get_json(force=True, silent=True)
    if not isinstance(payload, dict):
        raise BadRequest("body is not a JSON object")

    decoded = {}
    for name, kind in fields.items():
        value = payload.get(name)
        if value is None:
            value = _ZERO_VALUES[kind]
        elif isinstance(value, bool) or not isinstance(value, kind):
            raise BadRequest(f"field {name!r} must be {kind.__name__}")
        decoded[name] = value
    return decoded


def _manager() -> UserManager:
    return current_app.config['USER_MANAGER']


@api.route('/api/user/create', methods=['POST'], provide_automatic_options=False)
def create_user():
    """Create a user in both stores and restart the server"""
    body = decode_body(password=str, days=int, ip_limit=int)
    result = _manager().create_user(body['password'], body['days'], body['ip_limit'])
    return envelope(True, "ZiVPN user created", result)


@api.route('/api/user/delete', methods=ANY_METHOD)
def delete_user():
    body = decode_body(password=str)
    _manager().delete_user(body['password'])
    return envelope(True, "User deleted")


@api.route('/api/user/renew', methods=ANY_METHOD)
def renew_user():
    body = decode_body(password=str, days=int)
    result = _manager().renew_user(body['password'], body['days'])
    if not result['expired']:
        return envelope(True, "User not found, nothing renewed", result)
    return envelope(True, "User renewed", result)


@api.route('/api/users', methods=ANY_METHOD)
def list_users():
    users = _manager().list_users()
    return envelope(True, "ZiVPN user list", [user.to_dict() for user in users])


def handle_api_error(error: ZiVPNError):
    if error.status_code >= 500:
        logger.error(f"{request.method} {request.path} failed: {error.detail}")
    else:
        logger.info(f"{request.method} {request.path} rejected: {error.detail}")
    return envelope(False, error.message, status=error.status_code)


def handle_http_error(error: HTTPException):
    if error.code != 405:
        return envelope(False, error.name, status=error.code or 500)

    logger.info(f"{request.method} {request.path} rejected: method not allowed")
    response, status = envelope(False, MethodNotAllowed.message, status=405)
    # Routing errors know which methods the rule accepts
    allowed = getattr(error, 'valid_methods', None)
    if allowed:
        response.headers['Allow'] = ', '.join(allowed)
    return response, status


def handle_unexpected_error(error: Exception):
    logger.exception(f"Unhandled error in {request.method} {request.path}: {error}")
    return envelope(False, "Internal server error", status=500)


def create_app(user_manager: UserManager, api_key: str,
               settings: Optional[Dict[str, Any]] = None) -> Flask:
    """
    Create the Flask application

    Args:
        user_manager: Manager performing all user operations
        api_key: Token expected in the X-API-Key header
        settings: Extra Flask configuration

    Returns:
        Configured Flask app
    """
    app = Flask(__name__)
    app.config.update(settings or {})
    app.config['USER_MANAGER'] = user_manager
    app.config['API_KEY'] = api_key

    app.before_request(require_api_key)
    app.register_blueprint(api)

    app.register_error_handler(ZiVPNError, handle_api_error)
    app.register_error_handler(HTTPException, handle_http_error)
    app.register_error_handler(Exception, handle_unexpected_error)

    return app


def start_web_server(app: Flask, host: str = '0.0.0.0', port: int = 8888) -> None:
    """
    Serve the app, one thread per request

    Args:
        app: App from create_app()
        host: Host to bind to
        port: Port to bind to
    """
    logger.info(f"ZiVPN API Management started at {host}:{port}")
    app.run(host=host, port=port, threaded=True, debug=False, use_reloader=False)
