"""Business logic for catalog search."""
import logging
from typing import Dict, List, Union

from ..repositories import GameRepository
from ..schemas import GameSearchFilters
from ..serializers import game_to_dict

logger = logging.getLogger('boardtunes.search')


class SearchService:
    """Validates search requests and runs them through
    :func:`~app.repositories.game_repository.build_search_query`.

    Rules
    -----
    * Every filter is optional; provided filters are combined with AND.
    * ``limit`` defaults to 20 (max 100) and ``offset`` to 0.
    * ``sort_order`` defaults to ``desc`` once ``sort_by`` is set; without
      ``sort_by`` rows come back in the store's natural order.
    * A game matching several requested categories is returned once.
    """

    def __init__(self, repository: GameRepository = None) -> None:
        self._repo = repository or GameRepository()

    def search(self, db, filters: Union[GameSearchFilters, Dict, None] = None) -> List[Dict]:
        """Return the page of games matching *filters*.

        Args:
            db:      SQLAlchemy session.
            filters: :class:`~app.schemas.GameSearchFilters`, a raw dict, or
                     ``None`` for "everything, first page".

        Raises:
            ValidationError: malformed filters, unknown sort key or inverted bounds.
            StoreError:      the database query failed.
        """
        if isinstance(filters, GameSearchFilters):
            filters.validate()
        else:
            filters = GameSearchFilters.from_dict(filters)
        games = self._repo.search(db, filters)
        logger.debug("Search %s returned %d game(s)", _describe(filters), len(games))
        return [game_to_dict(g) for g in games]


def _describe(filters: GameSearchFilters) -> str:
    active = {k: v for k, v in vars(filters).items() if v not in (None, [])}
    return ', '.join(f'{k}={v}' for k, v in sorted(active.items()))
