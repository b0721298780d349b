"""ORM models."""

from models.base import Base
from models.ratings import HbrSystem, PlayerHbrRating

__all__ = ["Base", "HbrSystem", "PlayerHbrRating"]
