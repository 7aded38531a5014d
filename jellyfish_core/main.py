"""Flask application entry point."""

import logging
from flask import Flask, jsonify
from flask_cors import CORS

from .actions import Worker
from .config import settings
from .db import init_db
from .default_cards.loader import bootstrap
from .exceptions import (
    AuthenticationError,
    ElementAlreadyExists,
    JellyfishError,
    PermissionsError,
    ResourceNotFound,
    ValidationError,
)
from .kernel import Kernel
from .utils import isodatetime

# Configure logging
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


# Create Flask app
app = Flask(__name__)

# CORS configuration
CORS(app, origins=settings.cors_origins, supports_credentials=True)


# Database initialization (runs once on app startup)
def initialize_database():
    """Create the schema if needed, then bootstrap the kernel and the worker."""
    try:
        init_db()
        kernel = bootstrap(Kernel())
        app.extensions["jellyfish"] = {
            "kernel": kernel,
            "worker": Worker(kernel),
        }
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        raise


# Initialize database with app context
with app.app_context():
    initialize_database()


# Error handlers
def _error_response(error: JellyfishError, status: int):
    response = {
        "error": {
            "type": error.__class__.__name__,
            "message": error.message
        }
    }
    if error.details:
        response["error"]["details"] = error.details
    return jsonify(response), status


@app.errorhandler(ValidationError)
def handle_validation_error(error):
    """Handle ValidationError, SchemaMismatch and UnknownCardType."""
    return _error_response(error, 400)


@app.errorhandler(AuthenticationError)
def handle_authentication_error(error):
    """Handle AuthenticationError and SessionExpired."""
    return _error_response(error, 401)


@app.errorhandler(PermissionsError)
def handle_permissions_error(error):
    return _error_response(error, 403)


@app.errorhandler(ResourceNotFound)
def handle_not_found(error):
    """Handle ResourceNotFound and ActionNotFound."""
    return _error_response(error, 404)


@app.errorhandler(ElementAlreadyExists)
def handle_already_exists(error):
    return _error_response(error, 409)


@app.errorhandler(JellyfishError)
def handle_jellyfish_error(error):
    """Handle DatabaseError and any other JellyfishError."""
    logger.error(f"{error.__class__.__name__}: {error.message}")
    return _error_response(error, 500)


@app.errorhandler(500)
def handle_internal_error(error):
    """Handle internal server errors."""
    logger.error(f"Internal error: {error}")
    return jsonify({
        "error": {
            "type": "InternalServerError",
            "message": "An internal error occurred"
        }
    }), 500


# Health check endpoints
@app.route("/health")
def health():
    """Health check endpoint."""
    return jsonify({"status": "ok"})


@app.route("/ping")
def ping():
    """Liveness check using the API v2 envelope."""
    return jsonify({"error": False, "data": {"timestamp": isodatetime.now()}})


# Register blueprints
from .api.v2 import api_v2_bp
from .auth.api import auth_bp
from .graphql.api import graphql_bp

app.register_blueprint(api_v2_bp)
app.register_blueprint(auth_bp)
app.register_blueprint(graphql_bp)


if __name__ == "__main__":
    app.run(debug=True)
