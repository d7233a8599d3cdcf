"""Celery tasks for Brickvest."""

from brickvest.tasks.celery_app import celery_app

__all__ = ["celery_app"]
