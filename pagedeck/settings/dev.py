# pagedeck/settings/dev.py
# export DJANGO_SETTINGS_MODULE=pagedeck.settings.dev

from .base import *

DEBUG = True

ALLOWED_HOSTS = ["127.0.0.1", "localhost", "testserver"]

# Dev: cache en mémoire, pas besoin de Redis
CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "pagedeck-dev",
        "TIMEOUT": 300,
    }
}

CELERY_TASK_ALWAYS_EAGER = True

LOGGING["loggers"].update({
    "cms.manager": {"handlers": ["console"], "level": "DEBUG", "propagate": False},
    "cms.cache": {"handlers": ["console"], "level": "DEBUG", "propagate": False},
})
