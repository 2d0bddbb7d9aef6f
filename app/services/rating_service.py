"""Business logic for song ratings."""
import logging
from typing import Dict, Union

import database
from ..errors import NotFoundError
from ..repositories import GameRepository, RatingRepository, SongRepository
from ..schemas import RateSongInput
from ..serializers import rating_to_dict, to_float

logger = logging.getLogger('boardtunes.ratings')


class RatingService:
    """Validates and applies rating operations, delegating persistence to
    :class:`~app.repositories.rating_repository.RatingRepository`.

    Rules
    -----
    * ``rating`` must be an integer in the range **1-5** (inclusive).
    * A second rating for the same song from the same ``user_ip`` replaces
      the first (upsert semantics) and advances ``updated_at``.
    * Averages are recomputed on every call; an unrated song or game reports
      ``average_rating`` 0 and ``total_ratings`` 0.
    """

    def __init__(self, repository: RatingRepository = None,
                 songs: SongRepository = None,
                 games: GameRepository = None) -> None:
        self._repo = repository or RatingRepository()
        self._songs = songs or SongRepository()
        self._games = games or GameRepository()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def rate(self, db, data: Union[RateSongInput, Dict]) -> Dict:
        """Add or replace a rating.

        Raises:
            ValidationError: rating outside 1-5 or missing rater id.
            NotFoundError:   the song does not exist.
        """
        payload = data if isinstance(data, RateSongInput) else RateSongInput.from_dict(data)
        with database.atomic(db):
            if not self._songs.exists(db, payload.song_id):
                raise NotFoundError(f"Song with id {payload.song_id} not found")
            rating = self._repo.upsert(db, payload.song_id, payload.user_ip, payload.rating)
        logger.debug("Song %s rated %s by %s", payload.song_id, payload.rating, payload.user_ip)
        return rating_to_dict(rating)

    def song_ratings(self, db, song_id: int) -> Dict:
        """Return ``{"average_rating", "total_ratings"}`` for *song_id*."""
        average, total = self._repo.song_stats(db, song_id)
        return _summary(average, total)

    def game_ratings(self, db, game_id: int) -> Dict:
        """Return the rating summary across all songs of *game_id*.

        Raises:
            NotFoundError: the game does not exist.
        """
        if not self._games.exists(db, game_id):
            raise NotFoundError(f"Game with id {game_id} not found")
        average, total = self._repo.game_stats(db, game_id)
        return _summary(average, total)


def _summary(average, total) -> Dict:
    return {
        'average_rating': to_float(average) or 0.0,
        'total_ratings': int(total or 0),
    }
