"""Repository for games, including the search query builder."""
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy import asc, desc

import database
from database import Game, game_category_relations
from .base import BaseRepository, next_timestamp

FEATURED_MIN_RATING = Decimal('7.0')
FEATURED_LIMIT = 10


def _decimal(value: float) -> Decimal:
    return Decimal(str(value))


def _like_pattern(text: str) -> str:
    """Build a substring pattern with LIKE wildcards in *text* escaped."""
    escaped = text.replace('\\', '\\\\').replace('%', '\\%').replace('_', '\\_')
    return f'%{escaped}%'


def build_search_query(db, filters):
    """Translate *filters* into a :class:`~sqlalchemy.orm.Query` over games.

    All provided filters are ANDed; ``None`` / empty values add no predicate.
    Player counts use overlap semantics: a game matches ``min_players`` when
    it supports at least that many players and ``max_players`` when it can
    start with at most that many.

    When ``category_ids`` is non-empty the relation table is inner-joined and
    rows are collapsed with ``DISTINCT`` so a game linked to several of the
    requested categories occupies one pagination slot.

    Args:
        db:      SQLAlchemy session.
        filters: :class:`~app.schemas.GameSearchFilters` (already validated).

    Returns:
        Query with filtering, ordering, limit and offset applied.
    """
    query = db.query(Game)

    if filters.category_ids:
        query = (query
                 .join(game_category_relations,
                       game_category_relations.c.game_id == Game.id)
                 .filter(game_category_relations.c.category_id.in_(filters.category_ids))
                 .distinct())

    if filters.query:
        query = query.filter(Game.name.ilike(_like_pattern(filters.query), escape='\\'))

    if filters.min_players is not None:
        query = query.filter(Game.max_players >= filters.min_players)
    if filters.max_players is not None:
        query = query.filter(Game.min_players <= filters.max_players)

    if filters.min_playtime is not None:
        query = query.filter(Game.playtime_minutes >= filters.min_playtime)
    if filters.max_playtime is not None:
        query = query.filter(Game.playtime_minutes <= filters.max_playtime)

    # A game is suitable when its age rating does not exceed the given age
    if filters.min_age is not None:
        query = query.filter(Game.age_rating <= filters.min_age)

    if filters.complexity_min is not None:
        query = query.filter(Game.complexity_rating >= _decimal(filters.complexity_min))
    if filters.complexity_max is not None:
        query = query.filter(Game.complexity_rating <= _decimal(filters.complexity_max))

    if filters.sort_by:
        direction = asc if filters.sort_order == 'asc' else desc
        # id keeps pages stable when sort values tie
        query = query.order_by(direction(getattr(Game, filters.sort_by)), direction(Game.id))

    return query.limit(filters.limit).offset(filters.offset)


class GameRepository(BaseRepository):
    """Data access for :class:`database.Game` rows and their category links."""

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, db, game_id: int) -> Optional[Game]:
        """Return the game with *game_id*, or ``None``."""
        with self._store_errors(f"load game {game_id}"):
            return db.get(Game, game_id)

    def exists(self, db, game_id: int) -> bool:
        with self._store_errors(f"check game {game_id}"):
            return db.query(Game.id).filter(Game.id == game_id).first() is not None

    def list_all(self, db) -> List[Game]:
        """Return every game in the store's natural order."""
        with self._store_errors("list games"):
            return db.query(Game).all()

    def search(self, db, filters) -> List[Game]:
        """Return the page of games matching *filters*."""
        with self._store_errors("search games"):
            return build_search_query(db, filters).all()

    def featured(self, db) -> List[Game]:
        """Return the top-rated, ranked games (rating >= 7.0, at most 10)."""
        with self._store_errors("load featured games"):
            return (db.query(Game)
                    .filter(Game.bgg_rating.isnot(None),
                            Game.bgg_rating >= FEATURED_MIN_RATING,
                            Game.bgg_rank.isnot(None))
                    .order_by(Game.bgg_rating.desc(), Game.created_at.desc())
                    .limit(FEATURED_LIMIT)
                    .all())

    # ------------------------------------------------------------------
    # Writes (flushed, committed by the caller)
    # ------------------------------------------------------------------

    def add(self, db, values: Dict, categories: List[database.Category]) -> Game:
        """Insert a game linked to *categories* and return it with its id."""
        values = dict(values)
        values['complexity_rating'] = _decimal(values['complexity_rating'])
        with self._store_errors("create game"):
            game = Game(**values)
            game.categories = list(categories)
            db.add(game)
            db.flush()
            return game

    def update(self, db, game: Game, changes: Dict,
               categories: Optional[List[database.Category]] = None) -> Game:
        """Apply *changes* to *game*; replace its categories when given.

        ``updated_at`` always advances, even when no column value changed.
        """
        with self._store_errors(f"update game {game.id}"):
            for name, value in changes.items():
                if name == 'complexity_rating':
                    value = _decimal(value)
                setattr(game, name, value)
            if categories is not None:
                game.categories = list(categories)
            game.updated_at = next_timestamp(game.updated_at)
            db.flush()
            return game

    def set_bgg_stats(self, db, game: Game, rating: Optional[float],
                      rank: Optional[int]) -> Game:
        with self._store_errors(f"store BGG stats for game {game.id}"):
            game.bgg_rating = _decimal(rating) if rating is not None else None
            game.bgg_rank = rank
            game.updated_at = next_timestamp(game.updated_at)
            db.flush()
            return game

    def delete(self, db, game_id: int) -> bool:
        """Delete the game; songs, ratings and category links cascade.

        Returns:
            ``True`` if a game was removed; ``False`` if it did not exist.
        """
        with self._store_errors(f"delete game {game_id}"):
            game = db.get(Game, game_id)
            if game is None:
                return False
            db.delete(game)
            db.flush()
            return True
