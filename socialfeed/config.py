import os

from dotenv import load_dotenv


load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///socialfeed.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "dev-secret")
    JWT_ACCESS_TOKEN_MINUTES = int(os.getenv("JWT_ACCESS_TOKEN_MINUTES", "15"))
    JWT_REFRESH_TOKEN_DAYS = int(os.getenv("JWT_REFRESH_TOKEN_DAYS", "30"))

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    FEED_DEFAULT_LIMIT = int(os.getenv("FEED_DEFAULT_LIMIT", "5"))
    FEED_MAX_LIMIT = int(os.getenv("FEED_MAX_LIMIT", "20"))
    # Seconds between streamed posts.
    FEED_STREAM_DELAY_SECONDS = float(os.getenv("FEED_STREAM_DELAY_SECONDS", "0"))

    CHAT_MAX_MESSAGE_LENGTH = int(os.getenv("CHAT_MAX_MESSAGE_LENGTH", "1000"))
    CHAT_DEFAULT_LIMIT = int(os.getenv("CHAT_DEFAULT_LIMIT", "50"))
    CHAT_MAX_LIMIT = int(os.getenv("CHAT_MAX_LIMIT", "100"))

    POST_SOFT_DELETE = _env_bool("POST_SOFT_DELETE", False)
    MAX_MEDIA_ITEMS = int(os.getenv("MAX_MEDIA_ITEMS", "4"))

    STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "local").strip().lower()
    UPLOAD_DIR = os.getenv(
        "UPLOAD_DIR",
        os.path.join(os.getcwd(), "static", "uploads"),
    )
    UPLOAD_PUBLIC_PATH = os.getenv("UPLOAD_PUBLIC_PATH", "/uploads")
    STORAGE_RETRY_ATTEMPTS = int(os.getenv("STORAGE_RETRY_ATTEMPTS", "3"))
    STORAGE_RETRY_BASE_DELAY = float(os.getenv("STORAGE_RETRY_BASE_DELAY", "0.1"))
    STORAGE_RETRY_MULTIPLIER = float(os.getenv("STORAGE_RETRY_MULTIPLIER", "2"))

    MINIO_ENDPOINT = os.getenv("MINIO_ENDPOINT", "localhost:9000")
    MINIO_ACCESS_KEY = os.getenv("MINIO_ACCESS_KEY", "admin")
    MINIO_SECRET_KEY = os.getenv("MINIO_SECRET_KEY", "supersecret")
    MINIO_BUCKET = os.getenv("MINIO_BUCKET", "media")
    MINIO_SECURE = _env_bool("MINIO_SECURE", False)
    MINIO_CONNECT_TIMEOUT = float(os.getenv("MINIO_CONNECT_TIMEOUT", "5"))
    MINIO_READ_TIMEOUT = float(os.getenv("MINIO_READ_TIMEOUT", "20"))
    MINIO_HTTP_POOL_MAXSIZE = int(os.getenv("MINIO_HTTP_POOL_MAXSIZE", "32"))

    MEDIA_CACHE_MAX_AGE_SECONDS = int(
        os.getenv("MEDIA_CACHE_MAX_AGE_SECONDS", str(7 * 24 * 60 * 60))
    )
    MEDIA_CACHE_IMMUTABLE = _env_bool("MEDIA_CACHE_IMMUTABLE", True)
    MEDIA_STREAM_CHUNK_SIZE = int(os.getenv("MEDIA_STREAM_CHUNK_SIZE", str(256 * 1024)))

    EMBED_FETCH_TIMEOUT = float(os.getenv("EMBED_FETCH_TIMEOUT", "5"))
    EMBED_FETCH_TITLES = _env_bool("EMBED_FETCH_TITLES", False)
