"""
Security Utilities & Middleware

CORS, response headers, JSON error pages, request logging and the partner
portal token guard. Everything is wired up by setup_security() from the app
factory.
"""
import os
import uuid
import secrets
from functools import wraps
from typing import Callable, Dict, Any, Optional
from flask import Flask, request, jsonify, Response, g
from flask_cors import CORS
import logging

logger = logging.getLogger(__name__)

PARTNER_TOKEN_HEADER = 'X-Partner-Token'
REQUEST_ID_HEADER = 'X-Request-ID'
QUIET_PATHS = ('/api/health', '/api/ping')
WEAK_SECRETS = ('dev', 'test', 'secret', 'password', '12345', 'changeme')

# status -> (error, message) for the JSON error pages
HTTP_ERRORS = {
    400: ('Bad Request', 'The request could not be understood or was missing required parameters'),
    401: ('Unauthorized', 'Authentication required'),
    403: ('Forbidden', 'You do not have permission to access this resource'),
    404: ('Not Found', 'The requested resource was not found'),
    405: ('Method Not Allowed', 'The method is not allowed for the requested URL'),
    413: ('Payload Too Large', 'Attachments are limited to the configured upload size'),
    429: ('Rate Limit Exceeded', 'Too many requests. Please try again later'),
    503: ('Service Unavailable', 'The service is temporarily unavailable. Please try again later'),
}


def is_secure_secret(secret_key: Optional[str]) -> bool:
    """At least 32 characters and not an obvious placeholder"""
    if not secret_key or len(secret_key) < 32:
        return False
    return not any(weak in secret_key.lower() for weak in WEAK_SECRETS)


def ensure_secret_key(config: Dict[str, Any]) -> str:
    """Return the configured secret key, or a generated one when it is missing or weak."""
    secret_key = config.get('SECRET_KEY')
    if is_secure_secret(secret_key):
        return secret_key

    if os.environ.get('FLASK_ENV') == 'production':
        logger.error("No secure SECRET_KEY in production, sessions will not survive a restart")
    secret_key = secrets.token_hex(32)
    logger.warning(f"Generated new secret key (length: {len(secret_key)})")
    return secret_key


def setup_security_headers(app: Flask):
    """Add security headers to all responses"""
    @app.after_request
    def add_security_headers(response: Response) -> Response:
        response.headers['X-Frame-Options'] = 'SAMEORIGIN'
        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['Referrer-Policy'] = 'strict-origin-when-cross-origin'
        # JSON plus the printable inspection certificate (inline styles, data: images)
        response.headers['Content-Security-Policy'] = (
            "default-src 'self'; style-src 'self' 'unsafe-inline'; img-src 'self' data: blob:"
        )
        if not app.debug and not app.testing:
            response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'
        if request.path.startswith('/api/partner-portal'):
            response.headers['Cache-Control'] = 'no-store'
        return response


def setup_cors(app: Flask, config: Dict[str, Any]):
    """
    Configure CORS for the API

    The partner portal is usually served from another origin, so its token
    header has to be allowed explicitly.
    """
    cors_origins = config.get('CORS_ORIGINS', ['*'])
    cors_headers = list(config.get('CORS_ALLOW_HEADERS', ['Content-Type', 'Authorization']))
    if PARTNER_TOKEN_HEADER not in cors_headers:
        cors_headers.append(PARTNER_TOKEN_HEADER)

    if not app.debug and not app.testing and '*' in cors_origins:
        logger.warning("Using wildcard CORS in production! Set CORS_ORIGINS environment variable.")

    CORS(
        app,
        resources={r"/api/*": {"origins": cors_origins}},
        methods=config.get('CORS_METHODS', ['GET', 'POST', 'PUT', 'PATCH', 'DELETE', 'OPTIONS']),
        allow_headers=cors_headers,
        expose_headers=[REQUEST_ID_HEADER, 'Content-Disposition'],
        max_age=3600
    )

    logger.info(f"CORS configured: origins={cors_origins}")


def get_partner_token() -> Optional[str]:
    """Read the partner token from X-Partner-Token or an Authorization bearer header."""
    token = request.headers.get(PARTNER_TOKEN_HEADER)
    if token:
        return token.strip()
    auth = request.headers.get('Authorization', '')
    if auth.lower().startswith('bearer '):
        return auth[7:].strip() or None
    return None


def require_partner_token(f: Callable) -> Callable:
    """
    Decorator for partner portal endpoints.

    Resolves the token to an active trade partner and stores its id on
    flask.g.partner_id.

    Usage:
        @partner_portal_bp.route('/api/partner-portal/jobs')
        @require_partner_token
        def partner_jobs():
            ...
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        from database.connection import get_db_session
        from services.partner_portal import PartnerPortalService, PortalAuthError

        token = get_partner_token()
        if not token:
            logger.warning(f"Missing partner token for {request.path}")
            return jsonify({'success': False, 'error': 'Partner token required'}), 401

        try:
            with get_db_session() as session:
                partner = PartnerPortalService(session).authenticate(token)
                g.partner_id = partner.id
        except PortalAuthError as e:
            logger.warning(f"Rejected partner token for {request.path}: {e}")
            return jsonify({'success': False, 'error': str(e)}), e.status_code

        return f(*args, **kwargs)

    return decorated_function


def setup_error_handlers(app: Flask):
    """Register JSON error pages so clients never get HTML or stack traces"""

    def make_handler(status, error, message):
        def handler(_exc):
            return jsonify({'success': False, 'error': error, 'message': message}), status
        return handler

    for status, (error, message) in HTTP_ERRORS.items():
        app.register_error_handler(status, make_handler(status, error, message))

    @app.errorhandler(500)
    def internal_server_error(error):
        logger.error(f"Internal server error on {request.method} {request.path}: {error}", exc_info=True)
        body = {
            'success': False,
            'error': 'Internal Server Error',
            'message': 'An error occurred while processing your request'
        }
        if app.debug:
            body['details'] = str(error)
        return jsonify(body), 500


def setup_request_logging(app: Flask):
    """Tag each request with an id and log it, skipping health probes"""
    @app.before_request
    def log_request():
        g.request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:12]
        if request.path in QUIET_PATHS:
            return
        logger.info(f"[{g.request_id}] {request.method} {request.path} from {request.remote_addr}")

    @app.after_request
    def log_response(response: Response) -> Response:
        request_id = g.get('request_id')
        if request_id:
            response.headers[REQUEST_ID_HEADER] = request_id
        if request.path not in QUIET_PATHS:
            partner = f" partner={g.partner_id}" if g.get('partner_id') else ''
            logger.info(f"[{request_id}] {response.status_code} {request.method} {request.path}{partner}")
        return response


def warn_missing_settings(app: Flask) -> bool:
    """Log production settings that are absent. Returns True when all are set."""
    missing = [name for name in ('SECRET_KEY', 'DATABASE_URL') if not os.environ.get(name)]
    for name in missing:
        logger.error(f"Missing environment variable in production: {name}")
    if not app.config.get('ANTHROPIC_API_KEY'):
        logger.warning("ANTHROPIC_API_KEY not set, SEO content generation will be unavailable")
    return not missing


def setup_security(app: Flask, config: Dict[str, Any]):
    """
    Setup all security features for the application

    Args:
        app: Flask application instance
        config: Application configuration dictionary
    """
    app.secret_key = ensure_secret_key(config)
    setup_cors(app, config)
    setup_security_headers(app)
    setup_error_handlers(app)
    setup_request_logging(app)

    if not app.debug and not app.testing:
        warn_missing_settings(app)

    logger.info("Security configuration complete")
