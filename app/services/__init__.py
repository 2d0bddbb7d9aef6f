"""Services package: expose all concrete services from one import."""
from .game_service import GameService
from .search_service import SearchService
from .song_service import SongService
from .rating_service import RatingService
from .category_service import CategoryService

__all__ = [
    'GameService',
    'SearchService',
    'SongService',
    'RatingService',
    'CategoryService',
]
