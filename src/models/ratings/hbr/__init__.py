"""Hidden battle rating ORM models."""

from models.ratings.hbr.player_rating import PlayerHbrRating
from models.ratings.hbr.system import HbrSystem

__all__ = ["HbrSystem", "PlayerHbrRating"]
