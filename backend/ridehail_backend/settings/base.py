"""
Base Django settings for the ride dispatch backend.

Environment variables are read from ``.env`` at the repository root.
Production overrides live in ``prod.py``.
"""

import os
from datetime import timedelta
from decimal import Decimal
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent.parent
load_dotenv(os.path.join(BASE_DIR, '..', '.env'))

SECRET_KEY = os.getenv("DJANGO_SECRET_KEY", "dev-insecure-secret-key-change-me")
DEBUG = os.getenv("DJANGO_DEBUG", "true").lower() == "true"
ALLOWED_HOSTS = os.getenv("ALLOWED_HOSTS", "*").split(',')

INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',

    # Third party
    'rest_framework',
    'rest_framework_simplejwt',
    'corsheaders',
    'channels',

    # Local apps
    'accounts',
    'drivers',
    'rides',
    'realtime',
]

MIDDLEWARE = [
    'corsheaders.middleware.CorsMiddleware',
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'ridehail_backend.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

WSGI_APPLICATION = 'ridehail_backend.wsgi.application'
ASGI_APPLICATION = 'ridehail_backend.asgi.application'

# Database: SQLite unless DB_ENGINE points somewhere else (e.g. postgresql)
DATABASES = {
    'default': {
        'ENGINE': os.getenv("DB_ENGINE", "django.db.backends.sqlite3"),
        'NAME': os.getenv("DB_NAME", str(BASE_DIR / 'db.sqlite3')),
        'USER': os.getenv("DB_USER", ""),
        'PASSWORD': os.getenv("DB_PASSWORD", ""),
        'HOST': os.getenv("DB_HOST", ""),
        'PORT': os.getenv("DB_PORT", ""),
    }
}

if DATABASES['default']['ENGINE'] == "django.db.backends.sqlite3":
    # SQLite has no row locks: take the write lock at BEGIN so concurrent
    # ride updates queue up instead of failing with "database is locked"
    DATABASES['default']['OPTIONS'] = {
        'transaction_mode': 'IMMEDIATE',
        'timeout': int(os.getenv("DB_TIMEOUT", 20)),
    }
    # Threaded tests need a file; shared-cache memory DBs ignore the timeout
    DATABASES['default']['TEST'] = {'NAME': str(BASE_DIR / 'test_db.sqlite3')}

AUTH_USER_MODEL = 'accounts.User'

AUTH_PASSWORD_VALIDATORS = [
    {'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator'},
    {'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator'},
    {'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator'},
    {'NAME': 'django.contrib.auth.password_validation.NumericPasswordValidator'},
]

LANGUAGE_CODE = 'en-us'
TIME_ZONE = 'UTC'
USE_I18N = True
USE_TZ = True

STATIC_URL = 'static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

CORS_ALLOW_ALL_ORIGINS = DEBUG

# REST framework / JWT
REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': (
        'rest_framework_simplejwt.authentication.JWTAuthentication',
        'rest_framework.authentication.SessionAuthentication',
    ),
    'DEFAULT_PERMISSION_CLASSES': (
        'rest_framework.permissions.IsAuthenticated',
    ),
}

SIMPLE_JWT = {
    'ACCESS_TOKEN_LIFETIME': timedelta(hours=int(os.getenv("JWT_ACCESS_HOURS", 12))),
    'REFRESH_TOKEN_LIFETIME': timedelta(days=int(os.getenv("JWT_REFRESH_DAYS", 7))),
}

# Channels (in-memory for development and tests; Redis in prod.py)
CHANNEL_LAYERS = {
    "default": {
        "BACKEND": "channels.layers.InMemoryChannelLayer",
    }
}

# Celery
REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")
CELERY_BROKER_URL = os.getenv("CELERY_BROKER_URL", REDIS_URL)
CELERY_RESULT_BACKEND = os.getenv("CELERY_RESULT_BACKEND", REDIS_URL)
CELERY_TIMEZONE = TIME_ZONE

# ---------------------- Ride dispatch tunables ----------------------

RIDE_DISPATCH_MAX_CANDIDATES = int(os.getenv("RIDE_DISPATCH_MAX_CANDIDATES", 5))
RIDE_OFFER_TTL_SECONDS = int(os.getenv("RIDE_OFFER_TTL_SECONDS", 300))
RIDE_REQUEST_TIMEOUT_SECONDS = int(os.getenv("RIDE_REQUEST_TIMEOUT_SECONDS", 600))
RIDE_MAX_DISPATCH_ROUNDS = int(os.getenv("RIDE_MAX_DISPATCH_ROUNDS", 3))
RIDE_SWEEP_INTERVAL_SECONDS = int(os.getenv("RIDE_SWEEP_INTERVAL_SECONDS", 15))
RIDE_CANDIDATE_RADIUS_METERS = None
RIDE_REQUIRE_PICKUP_OTP = os.getenv("RIDE_REQUIRE_PICKUP_OTP", "false").lower() == "true"

RIDE_BASE_FARE = Decimal(os.getenv("RIDE_BASE_FARE", "3.00"))
RIDE_PER_KM_RATE = Decimal(os.getenv("RIDE_PER_KM_RATE", "1.50"))
DRIVER_COMMISSION_RATE = Decimal(os.getenv("DRIVER_COMMISSION_RATE", "15.00"))

RIDE_FARE_ESTIMATOR = "services.estimators.estimate_fare"
RIDE_ETA_ESTIMATOR = "services.estimators.estimate_eta_minutes"
RIDE_CANDIDATE_SCORER = "drivers.availability.proximity_score"

CELERY_BEAT_SCHEDULE = {
    "sweep-stale-rides": {
        "task": "rides.tasks.sweep_stale_rides_task",
        "schedule": float(RIDE_SWEEP_INTERVAL_SECONDS),
    },
}

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": LOG_LEVEL,
    },
    "loggers": {
        "django": {
            "handlers": ["console"],
            "level": os.getenv("DJANGO_LOG_LEVEL", "WARNING"),
            "propagate": False,
        },
    },
}
