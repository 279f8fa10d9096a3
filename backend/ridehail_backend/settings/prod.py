from .base import *
import os

DEBUG = False
ALLOWED_HOSTS = os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1").split(',')
CORS_ALLOW_ALL_ORIGINS = False
CORS_ALLOWED_ORIGINS = os.getenv("CORS_ALLOWED_ORIGINS", "http://localhost:3000").split(',')

CHANNEL_LAYERS = {
    "default": {
        "BACKEND": "channels_redis.core.RedisChannelLayer",
        "CONFIG": {
            "hosts": [os.getenv("REDIS_URL", "redis://localhost:6379/0")],
        },
    }
}

# Row locks are real on PostgreSQL; SQLite only serializes writers
DATABASES["default"]["ENGINE"] = os.getenv("DB_ENGINE", "django.db.backends.postgresql")
DATABASES["default"]["ATOMIC_REQUESTS"] = False

if DATABASES["default"]["ENGINE"] != "django.db.backends.sqlite3":
    # The SQLite locking options from base do not apply to other backends
    DATABASES["default"].pop("OPTIONS", None)
    DATABASES["default"].pop("TEST", None)
