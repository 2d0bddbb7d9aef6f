"""Business logic for the game catalog."""
import logging
from typing import Dict, List, Optional, Union

import database
from bgg_client import BGGAPIError, BGGClient
from ..errors import ExternalStatsError, NotFoundError, ValidationError
from ..repositories import CategoryRepository, GameRepository, SongRepository
from ..schemas import UNSET, CreateGameInput, UpdateGameInput
from ..serializers import category_to_dict, game_to_dict, song_to_dict

logger = logging.getLogger('boardtunes.games')


class GameService:
    """Creates, updates and reads games, delegating persistence to
    :class:`~app.repositories.game_repository.GameRepository`.

    Rules
    -----
    * ``min_players`` may never exceed ``max_players``, including after a
      partial update that touches only one of them.
    * Every category id given on create/update must exist; otherwise
      :class:`~app.errors.NotFoundError` is raised and nothing is written.
    * Creating or updating a game and (re)linking its categories happen in a
      single transaction.

    All methods accept a *db* SQLAlchemy session as the first argument so
    that callers (Flask route handlers) control the session lifecycle.
    """

    def __init__(self, repository: GameRepository = None,
                 categories: CategoryRepository = None,
                 songs: SongRepository = None,
                 bgg_client: BGGClient = None) -> None:
        self._repo = repository or GameRepository()
        self._categories = categories or CategoryRepository()
        self._songs = songs or SongRepository()
        self._bgg = bgg_client

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def create(self, db, data: Union[CreateGameInput, Dict]) -> Dict:
        """Insert a game and link it to ``category_ids``.

        Returns:
            The stored game as a dict.

        Raises:
            ValidationError: invalid field values.
            NotFoundError:   an unknown category id.
        """
        payload = data if isinstance(data, CreateGameInput) else CreateGameInput.from_dict(data)
        with database.atomic(db):
            categories = self._load_categories(db, payload.category_ids)
            game = self._repo.add(db, payload.game_fields(), categories)
        logger.info("Created game %s (%s)", game.id, game.name)
        return game_to_dict(game)

    def list(self, db) -> List[Dict]:
        """Return every game."""
        return [game_to_dict(g) for g in self._repo.list_all(db)]

    def get_detail(self, db, game_id: int) -> Dict:
        """Return a game with its ``songs`` and ``categories`` lists.

        Raises:
            NotFoundError: no game with *game_id*.
        """
        game = self._require(db, game_id)
        detail = game_to_dict(game)
        detail['songs'] = [song_to_dict(s) for s in self._songs.list_for_game(db, game_id)]
        detail['categories'] = [category_to_dict(c) for c in game.categories]
        return detail

    def update(self, db, data: Union[UpdateGameInput, Dict]) -> Dict:
        """Apply a partial update; ``category_ids`` replaces the category set.

        Raises:
            ValidationError: invalid field values or inverted player range.
            NotFoundError:   unknown game or category id.
        """
        patch = data if isinstance(data, UpdateGameInput) else UpdateGameInput.from_dict(data)
        changes = patch.changes()
        with database.atomic(db):
            game = self._require(db, patch.id)
            min_players = changes.get('min_players', game.min_players)
            max_players = changes.get('max_players', game.max_players)
            if min_players > max_players:
                raise ValidationError("min_players must not exceed max_players")
            categories = None
            if patch.category_ids is not UNSET:
                categories = self._load_categories(db, patch.category_ids)
            game = self._repo.update(db, game, changes, categories)
        logger.info("Updated game %s (%s)", game.id, ', '.join(sorted(changes)) or 'no fields')
        return game_to_dict(game)

    def delete(self, db, game_id: int) -> bool:
        """Delete a game with its songs, ratings and category links.

        Returns:
            ``True`` if the game existed and was removed; ``False`` otherwise.
        """
        with database.atomic(db):
            deleted = self._repo.delete(db, game_id)
        if deleted:
            logger.info("Deleted game %s", game_id)
        return deleted

    def featured(self, db) -> List[Dict]:
        """Return up to 10 highly rated, ranked games, best first."""
        return [game_to_dict(g) for g in self._repo.featured(db)]

    def update_external_stats(self, db, game_id: int) -> Dict:
        """Refresh ``bgg_rating`` / ``bgg_rank`` from BoardGameGeek.

        Raises:
            NotFoundError:      no game with *game_id*.
            ValidationError:    the game has no ``bgg_id``.
            ExternalStatsError: BoardGameGeek did not return stats.
        """
        game = self._require(db, game_id)
        if game.bgg_id is None:
            raise ValidationError(f"Game {game_id} has no BGG id set")

        if self._bgg is None:
            self._bgg = BGGClient()
        try:
            stats = self._bgg.get_stats(game.bgg_id)
        except BGGAPIError as exc:
            logger.warning("BGG stats update failed for game %s: %s", game_id, exc)
            raise ExternalStatsError(str(exc)) from exc

        with database.atomic(db):
            game = self._repo.set_bgg_stats(db, game, stats.get('rating'), stats.get('rank'))
        return game_to_dict(game)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require(self, db, game_id: int) -> database.Game:
        game = self._repo.get(db, game_id)
        if game is None:
            raise NotFoundError(f"Game with id {game_id} not found")
        return game

    def _load_categories(self, db, category_ids: List[int]) -> List[database.Category]:
        categories = self._categories.get_many(db, category_ids)
        missing = set(category_ids) - {c.id for c in categories}
        if missing:
            raise NotFoundError(
                f"Categories not found: {', '.join(str(i) for i in sorted(missing))}")
        return categories
