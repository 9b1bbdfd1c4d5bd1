# draftpress/domain/exceptions.py


class DraftPressError(Exception):
    """Base class for every error the content engine raises on purpose."""

    status_code = 500


class NotFound(DraftPressError):
    status_code = 404


class ConflictStaleWrite(DraftPressError):
    """The caller's expected content hash no longer matches the draft."""

    status_code = 409

    def __init__(self, message, *, current_hash=None):
        super().__init__(message)
        self.current_hash = current_hash


class ConstraintViolation(DraftPressError):
    status_code = 400


class NothingToRestore(DraftPressError):
    """Undo or redo was requested with an empty stack."""

    status_code = 409


class HistoryIntegrityError(DraftPressError):
    """
    The version chain of an entity is broken or a patch does not apply.

    Fatal for undo, redo and restore on that entity until reconciled.
    """

    status_code = 500


class TransactionAborted(DraftPressError):
    status_code = 500


class StorageUnavailable(DraftPressError):
    """Transient database failure. Safe to retry."""

    status_code = 503


class AssetCleanupFailed(DraftPressError):
    """A blob backend refused to delete. Logged, never surfaced to callers."""

    status_code = 500
