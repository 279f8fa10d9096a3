"""Celery tasks for ride-related background processing."""

import logging

from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task
def sweep_stale_rides_task():
    """
    Periodic sweep scheduled by Celery beat (``CELERY_BEAT_SCHEDULE``).

    Expires overdue offers and re-dispatches or cancels rides that ran out
    of pending offers.
    """
    from rides.services.sweeper import sweep_stale_rides

    result = sweep_stale_rides()
    return result.as_dict()


@shared_task
def ping():
    """Used by the health check to verify a worker is consuming tasks."""
    return True
