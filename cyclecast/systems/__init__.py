"""Stateful systems built on the engines."""

from .rating_pool import RatingPool, from_persisted, to_persisted

__all__ = ["RatingPool", "from_persisted", "to_persisted"]
