import uuid
from datetime import datetime, timezone

from werkzeug.utils import secure_filename

ALLOWED_EXTENSIONS = {
    'png', 'jpg', 'jpeg', 'gif', 'webp', 'avif', 'svg', 'ico',
    'mp4', 'mov', 'avi', 'webm', 'mp3', 'wav',
    'pdf', 'woff', 'woff2', 'ttf', 'otf',
}


def allowed_file(filename):
    return '.' in filename and filename.rsplit('.', 1)[1].lower() in ALLOWED_EXTENSIONS


def build_storage_path(filename):
    """
    Unique, collision-free storage path for an upload: ``YYYY/MM/<hex>.<ext>``.
    """
    if not filename or not allowed_file(filename):
        raise ValueError("File type not allowed")

    safe_name = secure_filename(filename)
    ext = safe_name.rsplit('.', 1)[1].lower()
    now = datetime.now(timezone.utc)
    return f"{now:%Y/%m}/{uuid.uuid4().hex}.{ext}"
