# pagedeck/settings/base.py
from __future__ import annotations
import os
from pathlib import Path

# Optionnel en dev, inerte si .env absent
try:
    from dotenv import load_dotenv, find_dotenv  # type: ignore

    _dotenv_path = find_dotenv(filename=os.getenv("DOTENV_FILE", ".env"), usecwd=True)
    if _dotenv_path:
        load_dotenv(_dotenv_path, override=False)
except ImportError:
    pass

BASE_DIR = Path(__file__).resolve().parents[2]  # .../pagedeck

_TRUE_VALUES = {"1", "true", "yes", "y", "on"}


def env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return bool(default)
    return str(value).strip().lower() in _TRUE_VALUES


def _int_env(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except (TypeError, ValueError):
        return int(default)


# --------------------------------------------------------------------------------------
# Clés & debug
# --------------------------------------------------------------------------------------
SECRET_KEY = os.getenv("SECRET_KEY", "CHANGE_ME_DEV_ONLY")
DEBUG = False  # Par défaut: sécurisé. dev.py le passera à True.

ALLOWED_HOSTS: list[str] = []

# --------------------------------------------------------------------------------------
# Apps
# --------------------------------------------------------------------------------------
DJANGO_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
]

THIRD_PARTY_APPS = [
    "rest_framework",
]

LOCAL_APPS = [
    "apps.cms.apps.CmsConfig",
]

INSTALLED_APPS = DJANGO_APPS + THIRD_PARTY_APPS + LOCAL_APPS

# --------------------------------------------------------------------------------------
# Middleware
# Le décorateur de page doit voir la réponse finale de la vue: il vient en dernier.
# --------------------------------------------------------------------------------------
MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "apps.cms.middleware.request_id.RequestIdMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
    "apps.cms.middleware.errors.ErrorPageMiddleware",
    "apps.cms.middleware.decorator.PageDecoratorMiddleware",
]

ROOT_URLCONF = "pagedeck.urls"

# --------------------------------------------------------------------------------------
# Templates
# --------------------------------------------------------------------------------------
TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [BASE_DIR / "templates"],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "pagedeck.wsgi.application"

# --------------------------------------------------------------------------------------
# Database (100% Django, configurable via env)
# --------------------------------------------------------------------------------------
DB_ENGINE = os.getenv("DB_ENGINE", "sqlite3")
if DB_ENGINE == "sqlite3":
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": BASE_DIR / "db.sqlite3",
        }
    }
else:
    DATABASES = {
        "default": {
            "ENGINE": DB_ENGINE,
            "NAME": os.getenv("DB_NAME", "pagedeck_db"),
            "USER": os.getenv("DB_USER", "pagedeck"),
            "PASSWORD": os.getenv("DB_PASSWORD", ""),
            "HOST": os.getenv("DB_HOST", "127.0.0.1"),
            "PORT": os.getenv("DB_PORT", "5432"),
        }
    }

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# --------------------------------------------------------------------------------------
# I18N / TZ
# --------------------------------------------------------------------------------------
LANGUAGE_CODE = "fr"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

STATIC_URL = "/static/"
STATIC_ROOT = BASE_DIR / "staticfiles"

LOGIN_URL = "/admin/login/"

# --------------------------------------------------------------------------------------
# Logging (propre, exploitable)
# --------------------------------------------------------------------------------------
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {"format": "[{levelname}] {name}: {message}", "style": "{"},
        "verbose": {"format": "{asctime} [{levelname}] {name} {module}:{lineno} - {message}", "style": "{"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "verbose"},
    },
    "root": {"handlers": ["console"], "level": LOG_LEVEL},
    "loggers": {
        "django.request": {"handlers": ["console"], "level": "WARNING", "propagate": True},
    },
}

LOGGING["loggers"].update({
    "cms.manager": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
    "cms.cache": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
    "cms.decorator": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
    "cms.errors": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
    "cms.routes": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
    "cms.tasks": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
})

# --------------------------------------------------------------------------------------
# Redis / Cache
# --------------------------------------------------------------------------------------
REDIS_URL = os.getenv("REDIS_URL", "redis://127.0.0.1:6379/3")

CACHES = {
    "default": {
        "BACKEND": "django_redis.cache.RedisCache",
        "LOCATION": REDIS_URL,
        "OPTIONS": {
            "CLIENT_CLASS": "django_redis.client.DefaultClient",
            "COMPRESSOR": "django_redis.compressors.zlib.ZlibCompressor",
            "IGNORE_EXCEPTIONS": True,  # pas de 500 si Redis down
        },
        "KEY_PREFIX": "pagedeck",
        "TIMEOUT": 300,
    }
}

# --- Celery ---
CELERY_BROKER_URL = os.getenv("CELERY_BROKER_URL", REDIS_URL)
CELERY_RESULT_BACKEND = os.getenv("CELERY_RESULT_BACKEND", REDIS_URL)
CELERY_TASK_ALWAYS_EAGER = False
CELERY_TASK_TIME_LIMIT = 60
CELERY_TASK_SOFT_TIME_LIMIT = 45
CELERY_TASK_ACKS_LATE = True
CELERY_TASK_DEFAULT_QUEUE = "default"
CELERY_ACCEPT_CONTENT = ["json"]
CELERY_TASK_SERIALIZER = "json"
CELERY_RESULT_SERIALIZER = "json"
CELERY_TASK_ROUTES = {
    "apps.cms.tasks.invalidate_block_cache": {"queue": "default"},
}

REST_FRAMEWORK = {
    "DEFAULT_PERMISSION_CLASSES": ["rest_framework.permissions.IsAdminUser"],
    "DEFAULT_AUTHENTICATION_CLASSES": [
        "rest_framework.authentication.SessionAuthentication",
    ],
}

# --------------------------------------------------------------------------------------
# CMS
# --------------------------------------------------------------------------------------
CMS_CONFIG_PATH = Path(os.getenv("CMS_CONFIG_PATH", str(BASE_DIR / "configs" / "cms" / "cms.yml")))

# "strict" | "degrade" | None (None => strict si DEBUG, sinon degrade)
CMS_ERROR_POLICY = os.getenv("CMS_ERROR_POLICY") or None

CMS_BLOCK_SERVICES = {
    "core.container": "apps.cms.blocks.container.ContainerBlockService",
    "core.text": "apps.cms.blocks.text.TextBlockService",
    "core.template": "apps.cms.blocks.template.TemplateBlockService",
}

CMS_CACHE_BACKENDS = {
    "noop": {"BACKEND": "apps.cms.cache.backends.NoopCache"},
    "django": {
        "BACKEND": "apps.cms.cache.backends.DjangoCacheBackend",
        "OPTIONS": {"alias": "default"},
    },
}

# type de bloc -> nom de backend ("*" = défaut)
CMS_BLOCK_CACHES = {
    "*": "noop",
    "core.text": "django",
    "core.template": "django",
}

CMS_CACHE_DEFAULT_TTL = _int_env("CMS_CACHE_DEFAULT_TTL", 600)
