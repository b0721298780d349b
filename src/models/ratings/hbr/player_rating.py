"""player_hbr_ratings table model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base


class PlayerHbrRating(Base):
    """Latest rating snapshot (one row per player per HBR system)."""

    __tablename__ = "player_hbr_ratings"
    __table_args__ = (
        UniqueConstraint("hbr_system_id", "player_id", name="uq_player_hbr_rating_system_player"),
        CheckConstraint("uncertainty >= 0.0", name="ck_player_hbr_rating_uncertainty"),
        CheckConstraint("games_played >= 0", name="ck_player_hbr_rating_games_played"),
        CheckConstraint("peak_rating >= rating", name="ck_player_hbr_rating_peak"),
        CheckConstraint(
            "win_streak = 0 OR loss_streak = 0",
            name="ck_player_hbr_rating_streaks",
        ),
        Index("idx_player_hbr_rating_system_rating", "hbr_system_id", "rating"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    hbr_system_id: Mapped[int] = mapped_column(ForeignKey("hbr_systems.id"), nullable=False)
    player_id: Mapped[int] = mapped_column(Integer, nullable=False)
    rating: Mapped[float] = mapped_column(Float, nullable=False)
    uncertainty: Mapped[float] = mapped_column(Float, nullable=False)
    games_played: Mapped[int] = mapped_column(Integer, nullable=False)
    in_placement: Mapped[bool] = mapped_column(Boolean, nullable=False)
    peak_rating: Mapped[float] = mapped_column(Float, nullable=False)
    win_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    loss_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    recent_performance: Mapped[float] = mapped_column(Float, nullable=False, default=1.0)
    last_updated: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False),
        nullable=False,
        server_default=func.now(),
    )
