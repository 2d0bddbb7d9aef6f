"""Business logic for soundtrack songs."""
import logging
from typing import Dict, List, Union

import database
from ..errors import NotFoundError
from ..repositories import GameRepository, SongRepository
from ..schemas import CreateSongInput
from ..serializers import song_to_dict, to_float

logger = logging.getLogger('boardtunes.songs')


class SongService:
    """Adds songs to games and lists them with their rating summary."""

    def __init__(self, repository: SongRepository = None,
                 games: GameRepository = None) -> None:
        self._repo = repository or SongRepository()
        self._games = games or GameRepository()

    def create(self, db, data: Union[CreateSongInput, Dict]) -> Dict:
        """Attach a new song to an existing game.

        Raises:
            ValidationError: invalid field values.
            NotFoundError:   the game does not exist.
        """
        payload = data if isinstance(data, CreateSongInput) else CreateSongInput.from_dict(data)
        with database.atomic(db):
            if not self._games.exists(db, payload.game_id):
                raise NotFoundError(f"Game with id {payload.game_id} does not exist")
            song = self._repo.add(db, vars(payload).copy())
        logger.info("Created song %s for game %s", song.id, song.game_id)
        return song_to_dict(song)

    def list_for_game(self, db, game_id: int) -> List[Dict]:
        """Return the songs of *game_id* with ``average_rating`` and ``total_ratings``.

        ``average_rating`` is ``None`` for a song nobody has rated yet.

        Raises:
            NotFoundError: the game does not exist.
        """
        if not self._games.exists(db, game_id):
            raise NotFoundError(f"Game with id {game_id} not found")
        results = []
        for song, average, total in self._repo.list_for_game_with_ratings(db, game_id):
            entry = song_to_dict(song)
            entry['average_rating'] = to_float(average)
            entry['total_ratings'] = int(total)
            results.append(entry)
        return results
