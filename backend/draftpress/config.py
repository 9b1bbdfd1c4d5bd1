import os
from dotenv import load_dotenv

load_dotenv()


def _env_int(name, default):
    return int(os.getenv(name, default))


def _env_bool(name, default="false"):
    return os.getenv(name, default).lower() in {"1", "true", "yes", "on"}


class BaseConfig:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret")
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "dev-jwt-secret")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Version log
    VERSION_SNAPSHOT_INTERVAL = _env_int("VERSION_SNAPSHOT_INTERVAL", 10)

    # Publishing
    PUBLISH_TIMEOUT_SECONDS = _env_int("PUBLISH_TIMEOUT_SECONDS", 30)
    DRAFT_RETENTION_DAYS = _env_int("DRAFT_RETENTION_DAYS", 30)

    # Read path
    DEFAULT_ITEMS_PER_PAGE = _env_int("DEFAULT_ITEMS_PER_PAGE", 20)

    # Blob storage
    BLOB_STORE = os.getenv("BLOB_STORE", "local")
    UPLOAD_FOLDER = os.getenv("UPLOAD_FOLDER", "uploads")
    BLOB_PUBLIC_BASE_URL = os.getenv("BLOB_PUBLIC_BASE_URL", "/uploads")
    ASSET_DELETE_BATCH_SIZE = _env_int("ASSET_DELETE_BATCH_SIZE", 100)
    S3_BUCKET = os.getenv("S3_BUCKET")
    S3_ENDPOINT_URL = os.getenv("S3_ENDPOINT_URL")
    S3_REGION = os.getenv("S3_REGION", "us-east-1")

    # Post-commit tasks
    TASKS_RUN_INLINE = _env_bool("TASKS_RUN_INLINE")
    TASK_MAX_WORKERS = _env_int("TASK_MAX_WORKERS", 4)
    TASK_MAX_ATTEMPTS = _env_int("TASK_MAX_ATTEMPTS", 3)
    TASK_RETRY_BACKOFF_SECONDS = float(os.getenv("TASK_RETRY_BACKOFF_SECONDS", "1.0"))
    WEBHOOK_TIMEOUT_SECONDS = _env_int("WEBHOOK_TIMEOUT_SECONDS", 5)


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")
    SQLALCHEMY_DATABASE_URI = os.getenv("DEV_DATABASE_URI", "sqlite:///draftpress-dev.db")


class ProductionConfig(BaseConfig):
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URI")


class TestingConfig(BaseConfig):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    JWT_SECRET_KEY = "test-jwt-secret-with-enough-length-for-hs256"
    TASKS_RUN_INLINE = True
    TASK_RETRY_BACKOFF_SECONDS = 0.0
    PUBLISH_TIMEOUT_SECONDS = 30


config_by_name = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
}
