"""Repository package: expose all concrete repositories from one import."""
from .game_repository import GameRepository, build_search_query
from .song_repository import SongRepository
from .rating_repository import RatingRepository
from .category_repository import CategoryRepository

__all__ = [
    'GameRepository',
    'SongRepository',
    'RatingRepository',
    'CategoryRepository',
    'build_search_query',
]
