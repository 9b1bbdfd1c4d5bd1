from flask import jsonify

from draftpress.domain.exceptions import (
    ConflictStaleWrite,
    DraftPressError,
    StorageUnavailable,
)


def _error_response(error, status_code):
    response = jsonify({
        "error": type(error).__name__,
        "message": str(error),
    })
    response.status_code = status_code
    return response


def register_error_handlers(app):
    @app.errorhandler(ConflictStaleWrite)
    def handle_stale_write(error):
        response = _error_response(error, error.status_code)
        if error.current_hash:
            response.headers["ETag"] = error.current_hash
        return response

    @app.errorhandler(StorageUnavailable)
    def handle_storage_unavailable(error):
        app.logger.warning(f"Storage unavailable: {error}")
        response = _error_response(error, error.status_code)
        response.headers["Retry-After"] = "1"
        return response

    @app.errorhandler(DraftPressError)
    def handle_draftpress_error(error):
        if error.status_code >= 500:
            app.logger.error(f"{type(error).__name__}: {error}")
        return _error_response(error, error.status_code)
