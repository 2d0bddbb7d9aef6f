"""Conversion of ORM rows into JSON-ready dicts.

NUMERIC columns come back from the driver as :class:`decimal.Decimal` (or
text on some backends); they are turned into ``float`` here so callers never
see string-encoded numbers.
"""
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional


def to_float(value) -> Optional[float]:
    """Return *value* as a float, keeping ``None`` as ``None``."""
    if value is None:
        return None
    if isinstance(value, (Decimal, int, float, str)):
        return float(value)
    raise TypeError(f"Cannot convert {type(value).__name__} to float")


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def game_to_dict(game) -> Dict[str, Any]:
    return {
        'id': game.id,
        'name': game.name,
        'description': game.description,
        'rules_text': game.rules_text,
        'min_players': game.min_players,
        'max_players': game.max_players,
        'playtime_minutes': game.playtime_minutes,
        'age_rating': game.age_rating,
        'complexity_rating': to_float(game.complexity_rating),
        'bgg_id': game.bgg_id,
        'bgg_rating': to_float(game.bgg_rating),
        'bgg_rank': game.bgg_rank,
        'amazon_link': game.amazon_link,
        'bol_link': game.bol_link,
        'youtube_tutorial_url': game.youtube_tutorial_url,
        'cover_image_url': game.cover_image_url,
        'created_at': _iso(game.created_at),
        'updated_at': _iso(game.updated_at),
    }


def song_to_dict(song) -> Dict[str, Any]:
    return {
        'id': song.id,
        'game_id': song.game_id,
        'title': song.title,
        'description': song.description,
        'suno_track_id': song.suno_track_id,
        'audio_url': song.audio_url,
        'duration_seconds': song.duration_seconds,
        'genre': song.genre,
        'created_at': _iso(song.created_at),
    }


def rating_to_dict(rating) -> Dict[str, Any]:
    return {
        'id': rating.id,
        'song_id': rating.song_id,
        'user_ip': rating.user_ip,
        'rating': rating.rating,
        'created_at': _iso(rating.created_at),
        'updated_at': _iso(rating.updated_at),
    }


def category_to_dict(category) -> Dict[str, Any]:
    return {
        'id': category.id,
        'name': category.name,
        'description': category.description,
        'created_at': _iso(category.created_at),
    }
