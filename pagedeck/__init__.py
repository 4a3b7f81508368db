# Charge l'app Celery avec Django pour que shared_task utilise les réglages CELERY_*.
from .celery import app as celery_app

__all__ = ("celery_app",)
