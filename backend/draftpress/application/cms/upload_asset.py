# draftpress/application/cms/upload_asset.py
from typing import Optional

from flask import current_app

from draftpress.domain.exceptions import ConstraintViolation
from draftpress.engine import get_engine
from draftpress.utils.media import allowed_file, build_storage_path
from draftpress.utils.transaction import transactional

ASSET_SOURCES = {"library", "cms"}


def upload_asset(
    *,
    file,
    actor_id: Optional[str],
    source: str = "library",
    width: Optional[int] = None,
    height: Optional[int] = None,
    session_id: Optional[str] = None,
):
    """
    Store an uploaded file and create its asset draft.

    The blob is written first; if the draft cannot be saved, the blob is
    handed to the garbage collector, which finds it unreferenced.
    """
    if not file or not file.filename or not allowed_file(file.filename):
        raise ConstraintViolation("File type not allowed")
    if source not in ASSET_SOURCES:
        raise ConstraintViolation(f"Unknown asset source: {source}")

    engine = get_engine()
    data = file.read()
    storage_path = build_storage_path(file.filename)

    # 1️⃣ Blob first
    engine.blob_store.put(storage_path, data, content_type=file.mimetype)

    # 2️⃣ Draft row
    try:
        with transactional():
            asset = engine.store("asset").upsert_draft(
                None,
                {
                    "filename": file.filename,
                    "mime_type": file.mimetype,
                    "storage_path": storage_path,
                    "file_size": len(data),
                    "width": width,
                    "height": height,
                    "source": source,
                },
                session_id=session_id,
                actor_id=actor_id,
            )
    except Exception:
        current_app.logger.warning(f"Asset draft not saved, releasing blob {storage_path}")
        engine.gc.collect([storage_path])
        raise

    return asset
