# fleetcore_backend/errors.py
from flask import current_app, jsonify

from .billing.errors import BillingError, RecordingError, ValidationError

_STATUS = {
    "validation_error": 400,
    "not_found": 404,
    "recording_error": 409,
}


def register_error_handlers(app):
    @app.errorhandler(BillingError)
    def billing_error(e):
        status = _STATUS.get(e.code, 500)
        if isinstance(e, RecordingError):
            current_app.logger.warning("Recording failed: %s", e.message)
        body = {"error": e.code, "message": e.message}
        if isinstance(e, ValidationError) and e.details.get("field"):
            body["field"] = e.details["field"]
        return jsonify(body), status

    @app.errorhandler(400)
    def bad_request(e):
        return jsonify(error="bad_request", message=getattr(e, "description", "Bad Request")), 400

    @app.errorhandler(401)
    def unauthorized(e): return jsonify(error="unauthorized"), 401

    @app.errorhandler(403)
    def forbidden(e): return jsonify(error="forbidden"), 403

    @app.errorhandler(404)
    def not_found(e): return jsonify(error="not_found"), 404

    @app.errorhandler(405)
    def method_not_allowed(e): return jsonify(error="method_not_allowed"), 405

    @app.errorhandler(500)
    def server_error(e):
        current_app.logger.exception("Unhandled exception: %s", e)
        return jsonify(error="server_error"), 500
