"""Repository for song ratings ({(song_id, user_ip): rating})."""
from typing import Optional, Tuple

from sqlalchemy import func
from sqlalchemy.dialects import postgresql, sqlite

from database import Song, SongRating
from ..errors import StoreError
from .base import BaseRepository, next_timestamp

_UPSERT_INSERTS = {
    'postgresql': postgresql.insert,
    'sqlite': sqlite.insert,
}


class RatingRepository(BaseRepository):
    """Persists one rating per (song, rater) pair.

    The pair is protected by the ``uq_song_ratings_song_user`` unique
    constraint, and :meth:`upsert` writes with a single
    ``INSERT ... ON CONFLICT DO UPDATE`` statement so concurrent submissions
    from the same rater can never produce two rows.
    """

    def find(self, db, song_id: int, user_ip: str) -> Optional[SongRating]:
        with self._store_errors(f"load rating for song {song_id}"):
            return (db.query(SongRating)
                    .filter(SongRating.song_id == song_id, SongRating.user_ip == user_ip)
                    .populate_existing()
                    .first())

    def upsert(self, db, song_id: int, user_ip: str, rating: int) -> SongRating:
        """Insert the rating, or overwrite the rater's previous one.

        Returns:
            The stored :class:`database.SongRating` row.
        """
        dialect = db.get_bind().dialect.name
        insert = _UPSERT_INSERTS.get(dialect)
        if insert is None:
            raise StoreError(f"Rating upsert is not supported on {dialect}")

        previous = self.find(db, song_id, user_ip)
        now = next_timestamp(previous.updated_at if previous is not None else None)
        stmt = insert(SongRating.__table__).values(
            song_id=song_id,
            user_ip=user_ip,
            rating=rating,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=['song_id', 'user_ip'],
            set_={
                'rating': stmt.excluded.rating,
                'updated_at': stmt.excluded.updated_at,
            },
        )
        with self._store_errors(f"rate song {song_id}"):
            db.execute(stmt)
        return self.find(db, song_id, user_ip)

    # ------------------------------------------------------------------
    # Aggregates
    # ------------------------------------------------------------------

    def song_stats(self, db, song_id: int) -> Tuple[Optional[float], int]:
        """Return ``(average, count)`` for *song_id*; average is ``None`` when unrated."""
        with self._store_errors(f"aggregate ratings for song {song_id}"):
            average, total = (db.query(func.avg(SongRating.rating), func.count(SongRating.id))
                              .filter(SongRating.song_id == song_id)
                              .one())
            return average, total

    def game_stats(self, db, game_id: int) -> Tuple[Optional[float], int]:
        """Return ``(average, count)`` over every song of *game_id*."""
        with self._store_errors(f"aggregate ratings for game {game_id}"):
            average, total = (db.query(func.avg(SongRating.rating), func.count(SongRating.id))
                              .join(Song, Song.id == SongRating.song_id)
                              .filter(Song.game_id == game_id)
                              .one())
            return average, total
