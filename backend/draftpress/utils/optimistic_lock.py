from datetime import timezone

from dateutil.parser import ParserError, parse
from flask import abort, request


def normalize_ts(ts):
    """
    Ensure datetime is timezone-aware.
    Defaults to UTC if naive.
    """
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts


def expected_hash_from_request():
    """
    The content hash the client last saw, from ``If-Match``.

    Quoted ETag syntax and weak validators are accepted.
    """
    header = request.headers.get("If-Match")
    if not header or header.strip() == "*":
        return None

    value = header.strip()
    if value.startswith("W/"):
        value = value[2:]
    return value.strip('"')


def enforce_unmodified_since(entity):
    """
    Enforces optimistic locking using the If-Unmodified-Since header.
    Raises 409 Conflict if the entity has been modified since.
    """
    client_ts = request.headers.get("If-Unmodified-Since")
    if not client_ts or entity is None or entity.updated_at is None:
        return

    try:
        client_ts = normalize_ts(parse(client_ts))
    except (ParserError, OverflowError, ValueError):
        abort(400, description="Invalid If-Unmodified-Since header")

    server_ts = normalize_ts(entity.updated_at)

    if server_ts > client_ts:
        abort(409, description="Conflict detected. Resource has been modified.")
