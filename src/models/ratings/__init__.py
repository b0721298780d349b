"""Rating-system ORM models."""

from models.ratings.hbr import HbrSystem, PlayerHbrRating

__all__ = ["HbrSystem", "PlayerHbrRating"]
