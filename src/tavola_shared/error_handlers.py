"""
Centralized error handlers for Flask applications.
"""

from http import HTTPStatus

from flask import Flask, jsonify
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from tavola_shared.error_catalog import ServiceError
from tavola_shared.logging_config import get_logger
from tavola_shared.serializers import error_response
from tavola_shared.store import StorePrivilegeError

logger = get_logger(__name__)


def register_error_handlers(app: Flask) -> None:
    """
    Register centralized error handlers for the Flask app.

    Args:
        app: Flask application instance
    """

    @app.errorhandler(ServiceError)
    def handle_service_error(e: ServiceError):
        """Catalogued business and collaborator failures."""
        if e.status >= HTTPStatus.INTERNAL_SERVER_ERROR:
            logger.error("Service error %s: %s", e.code, e.message)
        else:
            logger.warning("Service error %s: %s", e.code, e.message)
        return jsonify(error_response(e.message, e.details, code=e.code)), e.status

    @app.errorhandler(PydanticValidationError)
    def handle_pydantic_validation_error(e: PydanticValidationError):
        logger.warning("Request validation error: %s", e)
        errors = [
            {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
            for err in e.errors()
        ]
        return jsonify(
            error_response("Invalid request data", {"errors": errors}, code="INVALID_PAYLOAD")
        ), HTTPStatus.BAD_REQUEST

    @app.errorhandler(StorePrivilegeError)
    def handle_store_privilege_error(e: StorePrivilegeError):
        logger.error("Store privilege violation: %s", e, exc_info=True)
        return jsonify(
            error_response("Internal server error")
        ), HTTPStatus.INTERNAL_SERVER_ERROR

    @app.errorhandler(SQLAlchemyError)
    def handle_database_error(e: SQLAlchemyError):
        logger.error("Database error: %s", e, exc_info=True)
        return jsonify(error_response("Database error")), HTTPStatus.INTERNAL_SERVER_ERROR

    @app.errorhandler(HTTPException)
    def handle_http_exception(e: HTTPException):
        logger.warning("HTTP exception %s: %s", e.code, e.description)
        return jsonify(error_response(e.description or str(e))), e.code

    @app.errorhandler(Exception)
    def handle_generic_exception(e: Exception):
        logger.error("Unhandled exception: %s", e, exc_info=True)
        return jsonify(error_response("Internal server error")), HTTPStatus.INTERNAL_SERVER_ERROR
