import logging

from django.db import transaction
from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from .models import Block

logger = logging.getLogger("cms.tasks")


def _enqueue_invalidation(block_id: int) -> None:
    from .tasks import invalidate_block_cache

    try:
        invalidate_block_cache.delay(block_id)
    except Exception:
        # Broker injoignable: le rendu continue, le cache expirera via son ttl.
        logger.exception("cms_invalidate_enqueue_failed block_id=%s", block_id)


@receiver(post_save, sender=Block)
def invalidate_block_on_save(sender, instance, created=False, **kwargs):
    # Un bloc neuf n'a encore aucun rendu en cache.
    if created or instance.pk is None:
        return
    block_id = instance.pk
    # Les workers ne doivent voir que l'état commité.
    transaction.on_commit(lambda: _enqueue_invalidation(block_id))


@receiver(post_delete, sender=Block)
def invalidate_block_on_delete(sender, instance, **kwargs):
    block_id = instance.pk
    if block_id is None:
        return
    transaction.on_commit(lambda: _enqueue_invalidation(block_id))
