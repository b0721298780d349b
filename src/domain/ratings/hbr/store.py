"""Thread-safe in-memory map of player ratings."""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable

from domain.ratings.hbr.record import PlayerRating

RecordFactory = Callable[[int], PlayerRating]


class RatingStore:
    """Player-id keyed store with lock-free reads and per-player writes.

    ``compute`` holds the player's lock for the whole read-compute-replace
    cycle, so two writers touching the same player apply one after the other
    while writers for different players do not block each other.
    """

    def __init__(self, factory: RecordFactory) -> None:
        self._factory = factory
        self._records: dict[int, PlayerRating] = {}
        self._key_locks: dict[int, threading.Lock] = {}
        self._lock = threading.Lock()
        self._created_count = 0

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, player_id: object) -> bool:
        return player_id in self._records

    @property
    def created_count(self) -> int:
        return self._created_count

    def get(self, player_id: int) -> PlayerRating | None:
        return self._records.get(player_id)

    def get_or_create(self, player_id: int) -> PlayerRating:
        record = self._records.get(player_id)
        if record is not None:
            return record

        with self._lock:
            record = self._records.get(player_id)
            if record is None:
                record = self._factory(player_id)
                self._records[player_id] = record
                self._created_count += 1
            return record

    def _key_lock(self, player_id: int) -> threading.Lock:
        lock = self._key_locks.get(player_id)
        if lock is not None:
            return lock
        with self._lock:
            return self._key_locks.setdefault(player_id, threading.Lock())

    def compute(
        self,
        player_id: int,
        update: Callable[[PlayerRating], PlayerRating],
    ) -> tuple[PlayerRating, PlayerRating]:
        """Atomically replace one record; returns (previous, stored)."""
        with self._key_lock(player_id):
            current = self.get_or_create(player_id)
            updated = update(current)
            if updated.player_id != player_id:
                raise ValueError(
                    f"update for player_id={player_id} returned player_id={updated.player_id}"
                )
            self._records[player_id] = updated
            return current, updated

    def put_all(self, records: Iterable[PlayerRating]) -> int:
        """Store externally restored records as-is; not counted as creations."""
        count = 0
        for record in records:
            with self._key_lock(record.player_id):
                self._records[record.player_id] = record
            count += 1
        return count

    def snapshot(self) -> dict[int, PlayerRating]:
        return dict(self._records)

    def player_ids(self) -> list[int]:
        return list(self._records)

    def clear(self) -> None:
        with self._lock:
            self._records.clear()
            self._key_locks.clear()


__all__ = ["RatingStore"]
