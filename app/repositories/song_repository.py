"""Repository for soundtrack songs."""
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func

from database import Song, SongRating
from .base import BaseRepository


class SongRepository(BaseRepository):
    """Data access for :class:`database.Song` rows."""

    def exists(self, db, song_id: int) -> bool:
        with self._store_errors(f"check song {song_id}"):
            return db.query(Song.id).filter(Song.id == song_id).first() is not None

    def add(self, db, values: Dict) -> Song:
        with self._store_errors("create song"):
            song = Song(**values)
            db.add(song)
            db.flush()
            return song

    def list_for_game(self, db, game_id: int) -> List[Song]:
        with self._store_errors(f"list songs for game {game_id}"):
            return db.query(Song).filter(Song.game_id == game_id).order_by(Song.id).all()

    def list_for_game_with_ratings(self, db, game_id: int) -> List[Tuple[Song, Optional[float], int]]:
        """Return ``(song, average_rating, total_ratings)`` for each song of *game_id*.

        Unrated songs get ``None`` as the average and ``0`` as the total.
        """
        with self._store_errors(f"list rated songs for game {game_id}"):
            rows = (db.query(Song,
                             func.avg(SongRating.rating),
                             func.count(SongRating.id))
                    .outerjoin(SongRating, SongRating.song_id == Song.id)
                    .filter(Song.game_id == game_id)
                    .group_by(Song.id)
                    .order_by(Song.id)
                    .all())
            return [(song, average, total) for song, average, total in rows]
