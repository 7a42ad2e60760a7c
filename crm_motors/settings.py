# crm_motors/settings.py
import os
from pathlib import Path

from dotenv import load_dotenv

# === BASE DIR ===
BASE_DIR = Path(__file__).resolve().parent.parent
# Variables de entorno desde .env (junto a manage.py)
load_dotenv(BASE_DIR / ".env")


# === HELPERS ===
def _bool(value, default=False):
    if value is None:
        return default
    return str(value).strip().lower() in ("1", "true", "t", "yes", "y", "on")


def _int(value, default):
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


# === CORE ===
SECRET_KEY = os.getenv("DJANGO_SECRET_KEY") or "dev-secret-key-change-me"

DEBUG = _bool(os.getenv("DJANGO_DEBUG"), False)

_hosts_env = os.getenv("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1,testserver")
ALLOWED_HOSTS = (
    ["*"]
    if "*" in _hosts_env
    else [h.strip() for h in _hosts_env.split(",") if h.strip()]
)

# === INSTALLED APPS ===
INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",

    # Apps locales
    "vehicles.apps.VehiclesConfig",
    "clients.apps.ClientsConfig",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "crm_motors.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "crm_motors.wsgi.application"


# === DATABASE ===
# Una conexión persistente por worker (CONN_MAX_AGE) en lugar de abrir
# un cliente nuevo en cada petición.
_conn_max_age = _int(os.getenv("DB_CONN_MAX_AGE"), 60)

if os.getenv("DB_ENGINE"):
    DATABASES = {
        "default": {
            "ENGINE": os.getenv("DB_ENGINE"),
            "NAME": os.getenv("DB_NAME"),
            "USER": os.getenv("DB_USER"),
            "PASSWORD": os.getenv("DB_PASSWORD"),
            "HOST": os.getenv("DB_HOST"),
            "PORT": os.getenv("DB_PORT"),
            "CONN_MAX_AGE": _conn_max_age,
            "CONN_HEALTH_CHECKS": True,
        }
    }
else:
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": BASE_DIR / "db.sqlite3",
        }
    }

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"


# === CACHE ===
# LocMem por defecto; en producción se puede apuntar a Redis vía CACHE_URL.
if os.getenv("CACHE_URL"):
    CACHES = {
        "default": {
            "BACKEND": "django.core.cache.backends.redis.RedisCache",
            "LOCATION": os.getenv("CACHE_URL"),
        }
    }
else:
    CACHES = {
        "default": {
            "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
            "LOCATION": "crm-motors",
        }
    }

# TTLs (segundos) de la caché de consultas del CRM
CRM_QUERY_CACHE_TTL = _int(os.getenv("CRM_QUERY_CACHE_TTL"), 300)
CRM_STATS_CACHE_TTL = _int(os.getenv("CRM_STATS_CACHE_TTL"), 120)


# === I18N ===
LANGUAGE_CODE = "es-es"
TIME_ZONE = "Europe/Madrid"
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"


# === LOGGING ===
CRM_LOG_LEVEL = os.getenv("CRM_LOG_LEVEL", "INFO").upper()

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
        "level": "WARNING",
    },
    "loggers": {
        "vehicles": {
            "handlers": ["console"],
            "level": CRM_LOG_LEVEL,
            "propagate": False,
        },
        "clients": {
            "handlers": ["console"],
            "level": CRM_LOG_LEVEL,
            "propagate": False,
        },
    },
}
