import logging

from flask import jsonify


logger = logging.getLogger(__name__)


class PostboardError(Exception):
    """Base class for errors surfaced to callers of the post service."""

    status_code = 500
    default_message = "Internal error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(PostboardError):
    """Input failed field or file validation."""

    status_code = 400
    default_message = "Invalid request"


class NotFoundError(PostboardError):
    status_code = 404
    default_message = "Not found"


class BadRequestError(PostboardError):
    """A state precondition failed, e.g. liking a post twice."""

    status_code = 409
    default_message = "Request conflicts with the current state"


class MediaStorageError(PostboardError):
    status_code = 503
    default_message = "Media storage is unavailable"


def _handle_postboard_error(error: PostboardError):
    if error.status_code >= 500:
        logger.error("%s: %s", type(error).__name__, error.message)
    return jsonify({"error": error.message}), error.status_code


def register_error_handlers(app):
    app.register_error_handler(PostboardError, _handle_postboard_error)
