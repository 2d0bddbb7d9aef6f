"""Typed request inputs, parsed and validated from JSON-like dicts.

Each input class exposes a ``from_dict`` constructor that raises
:class:`~app.errors.ValidationError` naming the offending field.  Services
accept either the dataclass or the raw dict.
"""
import math
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from .errors import ValidationError


class _Unset:
    """Marker for "field not provided" in partial updates."""

    def __repr__(self) -> str:
        return 'UNSET'

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()

SORT_FIELDS = ('name', 'bgg_rating', 'bgg_rank', 'playtime_minutes', 'created_at')
SORT_ALIASES = {'external_rating': 'bgg_rating', 'external_rank': 'bgg_rank'}
SORT_ORDERS = ('asc', 'desc')
MAX_LIMIT = 100
DEFAULT_LIMIT = 20


# ---------------------------------------------------------------------------
# Field coercion helpers
# ---------------------------------------------------------------------------

def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _int(name: str, value, minimum: int = None, maximum: int = None,
         nullable: bool = False) -> Optional[int]:
    if value is None:
        if nullable:
            return None
        raise ValidationError(f"{name} is required")
    if not _is_int(value):
        raise ValidationError(f"{name} must be an integer")
    if minimum is not None and value < minimum:
        raise ValidationError(f"{name} must be >= {minimum}")
    if maximum is not None and value > maximum:
        raise ValidationError(f"{name} must be <= {maximum}")
    return value


def _number(name: str, value, minimum: float = None, maximum: float = None,
            nullable: bool = False) -> Optional[float]:
    if value is None:
        if nullable:
            return None
        raise ValidationError(f"{name} is required")
    if not _is_number(value):
        raise ValidationError(f"{name} must be a number")
    if isinstance(value, float) and not math.isfinite(value):
        raise ValidationError(f"{name} must be a finite number")
    if minimum is not None and value < minimum:
        raise ValidationError(f"{name} must be >= {minimum}")
    if maximum is not None and value > maximum:
        raise ValidationError(f"{name} must be <= {maximum}")
    return float(value)


def _str(name: str, value, min_length: int = 0, max_length: int = None,
         nullable: bool = False) -> Optional[str]:
    if value is None:
        if nullable:
            return None
        raise ValidationError(f"{name} is required")
    if not isinstance(value, str):
        raise ValidationError(f"{name} must be a string")
    if len(value) < min_length:
        raise ValidationError(f"{name} must not be empty")
    if max_length is not None and len(value) > max_length:
        raise ValidationError(f"{name} must be at most {max_length} characters")
    return value


def _url(name: str, value, nullable: bool = False) -> Optional[str]:
    value = _str(name, value, nullable=nullable)
    if value is None:
        return None
    parsed = urlparse(value)
    if parsed.scheme not in ('http', 'https') or not parsed.netloc:
        raise ValidationError(f"{name} must be a valid http(s) URL")
    return value


def _int_list(name: str, value) -> List[int]:
    if not isinstance(value, (list, tuple)):
        raise ValidationError(f"{name} must be a list of integers")
    for item in value:
        if not _is_int(item):
            raise ValidationError(f"{name} must be a list of integers")
    # Preserve order, drop repeats
    return list(dict.fromkeys(value))


def _require_mapping(data) -> Dict:
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def _check_range(low_name: str, low, high_name: str, high) -> None:
    if low is not None and high is not None and low > high:
        raise ValidationError(f"{low_name} must not exceed {high_name}")


# Field rules shared by create and update; each returns the cleaned value.
_GAME_FIELDS = {
    'name': lambda v: _str('name', v, min_length=1, max_length=255),
    'description': lambda v: _str('description', v),
    'rules_text': lambda v: _str('rules_text', v),
    'min_players': lambda v: _int('min_players', v, minimum=1),
    'max_players': lambda v: _int('max_players', v, minimum=1),
    'playtime_minutes': lambda v: _int('playtime_minutes', v, minimum=1),
    'age_rating': lambda v: _int('age_rating', v, minimum=0),
    'complexity_rating': lambda v: _number('complexity_rating', v, minimum=1, maximum=5),
    'bgg_id': lambda v: _int('bgg_id', v, nullable=True),
    'amazon_link': lambda v: _url('amazon_link', v, nullable=True),
    'bol_link': lambda v: _url('bol_link', v, nullable=True),
    'youtube_tutorial_url': lambda v: _url('youtube_tutorial_url', v, nullable=True),
    'cover_image_url': lambda v: _url('cover_image_url', v, nullable=True),
}

# ---------------------------------------------------------------------------
# Games
# ---------------------------------------------------------------------------

@dataclass
class CreateGameInput:
    """Fields for a new catalog entry."""
    name: str
    description: str
    rules_text: str
    min_players: int
    max_players: int
    playtime_minutes: int
    age_rating: int
    complexity_rating: float
    bgg_id: Optional[int] = None
    amazon_link: Optional[str] = None
    bol_link: Optional[str] = None
    youtube_tutorial_url: Optional[str] = None
    cover_image_url: Optional[str] = None
    category_ids: List[int] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict) -> 'CreateGameInput':
        data = _require_mapping(data)
        values = {name: rule(data.get(name)) for name, rule in _GAME_FIELDS.items()}
        _check_range('min_players', values['min_players'],
                     'max_players', values['max_players'])
        category_ids = data.get('category_ids')
        values['category_ids'] = [] if category_ids is None else _int_list('category_ids', category_ids)
        return cls(**values)

    def game_fields(self) -> Dict[str, Any]:
        """Return the column values (everything except ``category_ids``)."""
        return {f.name: getattr(self, f.name) for f in fields(self) if f.name != 'category_ids'}


@dataclass
class UpdateGameInput:
    """Partial update of a game.

    Every field except ``id`` defaults to :data:`UNSET`.  ``None`` is a real
    value: it clears a nullable column and is rejected for required ones.
    ``category_ids`` replaces the full category set when provided.
    """
    id: int
    name: Any = UNSET
    description: Any = UNSET
    rules_text: Any = UNSET
    min_players: Any = UNSET
    max_players: Any = UNSET
    playtime_minutes: Any = UNSET
    age_rating: Any = UNSET
    complexity_rating: Any = UNSET
    bgg_id: Any = UNSET
    amazon_link: Any = UNSET
    bol_link: Any = UNSET
    youtube_tutorial_url: Any = UNSET
    cover_image_url: Any = UNSET
    category_ids: Any = UNSET

    @classmethod
    def from_dict(cls, data: Dict) -> 'UpdateGameInput':
        data = _require_mapping(data)
        values = {'id': _int('id', data.get('id'))}
        for name, rule in _GAME_FIELDS.items():
            if name in data:
                values[name] = rule(data[name])
        if 'category_ids' in data:
            values['category_ids'] = _int_list('category_ids', data['category_ids'])
        return cls(**values)

    def changes(self) -> Dict[str, Any]:
        """Return only the column values that were provided."""
        return {
            name: getattr(self, name)
            for name in _GAME_FIELDS
            if getattr(self, name) is not UNSET
        }


@dataclass
class GameSearchFilters:
    """Filter, sort and pagination options for game search."""
    query: Optional[str] = None
    category_ids: List[int] = field(default_factory=list)
    min_players: Optional[int] = None
    max_players: Optional[int] = None
    min_playtime: Optional[int] = None
    max_playtime: Optional[int] = None
    min_age: Optional[int] = None
    complexity_min: Optional[float] = None
    complexity_max: Optional[float] = None
    sort_by: Optional[str] = None
    sort_order: Optional[str] = None
    limit: int = DEFAULT_LIMIT
    offset: int = 0

    @classmethod
    def from_dict(cls, data: Optional[Dict]) -> 'GameSearchFilters':
        data = _require_mapping(data or {})
        limit = data.get('limit')
        offset = data.get('offset')
        category_ids = data.get('category_ids')
        filters = cls(
            query=data.get('query'),
            category_ids=[] if category_ids is None else category_ids,
            min_players=data.get('min_players'),
            max_players=data.get('max_players'),
            min_playtime=data.get('min_playtime'),
            max_playtime=data.get('max_playtime'),
            min_age=data.get('min_age'),
            complexity_min=data.get('complexity_min'),
            complexity_max=data.get('complexity_max'),
            sort_by=data.get('sort_by'),
            sort_order=data.get('sort_order'),
            limit=DEFAULT_LIMIT if limit is None else limit,
            offset=0 if offset is None else offset,
        )
        return filters.validate()

    def validate(self) -> 'GameSearchFilters':
        """Check every field in place and resolve sort aliases.

        Returns the same instance so callers can chain.

        Raises:
            ValidationError: a field is malformed or a bound is inverted.
        """
        if self.query is not None:
            self.query = _str('query', self.query) or None
        self.category_ids = _int_list('category_ids', self.category_ids)
        self.min_players = _int('min_players', self.min_players, minimum=1, nullable=True)
        self.max_players = _int('max_players', self.max_players, minimum=1, nullable=True)
        self.min_playtime = _int('min_playtime', self.min_playtime, minimum=0, nullable=True)
        self.max_playtime = _int('max_playtime', self.max_playtime, minimum=0, nullable=True)
        self.min_age = _int('min_age', self.min_age, minimum=0, nullable=True)
        self.complexity_min = _number('complexity_min', self.complexity_min,
                                      minimum=1, maximum=5, nullable=True)
        self.complexity_max = _number('complexity_max', self.complexity_max,
                                      minimum=1, maximum=5, nullable=True)

        if self.sort_by is not None:
            sort_by = _str('sort_by', self.sort_by)
            self.sort_by = SORT_ALIASES.get(sort_by, sort_by)
            if self.sort_by not in SORT_FIELDS:
                raise ValidationError(
                    f"sort_by must be one of: {', '.join(SORT_FIELDS)}")
        if self.sort_order is not None and self.sort_order not in SORT_ORDERS:
            raise ValidationError("sort_order must be 'asc' or 'desc'")

        self.limit = _int('limit', self.limit, minimum=1, maximum=MAX_LIMIT)
        self.offset = _int('offset', self.offset, minimum=0)
        self.check_bounds()
        return self

    def check_bounds(self) -> None:
        """Reject lower bounds that exceed their upper bound."""
        _check_range('min_players', self.min_players, 'max_players', self.max_players)
        _check_range('min_playtime', self.min_playtime, 'max_playtime', self.max_playtime)
        _check_range('complexity_min', self.complexity_min, 'complexity_max', self.complexity_max)


# ---------------------------------------------------------------------------
# Songs, ratings, categories
# ---------------------------------------------------------------------------

@dataclass
class CreateSongInput:
    game_id: int
    title: str
    suno_track_id: str
    audio_url: str
    duration_seconds: int
    description: Optional[str] = None
    genre: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict) -> 'CreateSongInput':
        data = _require_mapping(data)
        return cls(
            game_id=_int('game_id', data.get('game_id')),
            title=_str('title', data.get('title'), min_length=1, max_length=255),
            suno_track_id=_str('suno_track_id', data.get('suno_track_id'), max_length=100),
            audio_url=_url('audio_url', data.get('audio_url')),
            duration_seconds=_int('duration_seconds', data.get('duration_seconds'), minimum=1),
            description=_str('description', data.get('description'), nullable=True),
            genre=_str('genre', data.get('genre'), max_length=100, nullable=True),
        )


@dataclass
class RateSongInput:
    song_id: int
    user_ip: str
    rating: int

    @classmethod
    def from_dict(cls, data: Dict) -> 'RateSongInput':
        data = _require_mapping(data)
        return cls(
            song_id=_int('song_id', data.get('song_id')),
            user_ip=_str('user_ip', data.get('user_ip'), min_length=1, max_length=45),
            rating=_int('rating', data.get('rating'), minimum=1, maximum=5),
        )


@dataclass
class CreateCategoryInput:
    name: str
    description: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict) -> 'CreateCategoryInput':
        data = _require_mapping(data)
        return cls(
            name=_str('name', data.get('name'), min_length=1, max_length=100),
            description=_str('description', data.get('description'), nullable=True),
        )
