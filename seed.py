#!/usr/bin/env python3
"""
Demo data for BoardTunes.

``seed_database`` inserts a handful of categories, well-known board games,
their soundtrack songs and some sample ratings in one transaction.
``seed_if_empty`` only does so when the games table has no rows, which is
what the server runs on start when ``BOARDTUNES_SEED_ON_START`` is enabled.
"""

import logging
import random
from decimal import Decimal
from typing import Dict, Optional

import database
from database import Category, Game, Song, SongRating

logger = logging.getLogger('boardtunes.seed')

CATEGORIES = [
    ('Strategy', 'Games that require strategic thinking and long-term planning'),
    ('Family', 'Games suitable for players of all ages and families'),
    ('Card Game', 'Games primarily played with cards'),
    ('Cooperative', 'Games where players work together towards a common goal'),
    ('Euro Game', 'European-style strategy games with indirect player interaction'),
    ('Worker Placement', 'Games where players place workers to take actions'),
]

GAMES = [
    {
        'name': 'Ticket to Ride',
        'description': 'A cross-country train adventure where players collect train cards '
                       'to claim railway routes connecting cities across North America.',
        'rules_text': 'On a turn, draw two train car cards, claim a route by playing a set '
                      'of matching cards, or draw destination tickets and keep at least one. '
                      'The game ends when a player has two or fewer trains left.',
        'min_players': 2, 'max_players': 5, 'playtime_minutes': 60, 'age_rating': 8,
        'complexity_rating': Decimal('1.84'), 'bgg_id': 9209, 'bgg_rating': Decimal('7.40'), 'bgg_rank': 111,
        'youtube_tutorial_url': 'https://youtube.com/watch?v=qHmf1bau9xQ',
        'cover_image_url': 'https://picsum.photos/seed/tickettoride/300/300',
        'categories': ['Family', 'Strategy'],
        'songs': [
            ('All Aboard the Victory Train', 'Folk', 180, 'suno_ttr_001'),
            ('Railway Blues', 'Blues', 165, 'suno_ttr_002'),
            ('Coast to Coast Express', 'Country', 195, 'suno_ttr_003'),
        ],
    },
    {
        'name': 'Pandemic',
        'description': 'A cooperative game where a team of specialists treats infections '
                       'around the world while gathering resources for cures.',
        'rules_text': 'Each turn take four actions, draw two player cards, then infect '
                      'cities. Discover all four cures to win; too many outbreaks, an empty '
                      'player deck or running out of cubes loses the game.',
        'min_players': 2, 'max_players': 4, 'playtime_minutes': 45, 'age_rating': 8,
        'complexity_rating': Decimal('2.40'), 'bgg_id': 30549, 'bgg_rating': Decimal('7.60'), 'bgg_rank': 54,
        'youtube_tutorial_url': 'https://youtube.com/watch?v=ytK1zB8rf4E',
        'cover_image_url': 'https://picsum.photos/seed/pandemic/300/300',
        'categories': ['Cooperative', 'Strategy'],
        'songs': [
            ('Heroes in Hazmat', 'Orchestral', 210, 'suno_pandemic_001'),
            ('Outbreak Alert', 'Electronic', 155, 'suno_pandemic_002'),
            ('Cure Discovery', 'Cinematic', 175, 'suno_pandemic_003'),
        ],
    },
    {
        'name': 'Catan',
        'description': 'Players try to be the dominant force on the island of Catan by '
                       'building settlements, cities and roads.',
        'rules_text': 'Roll two dice; every player collects resources from hexes next to '
                      'their settlements. Trade, then build roads, settlements, cities or '
                      'development cards. First to ten victory points wins.',
        'min_players': 3, 'max_players': 4, 'playtime_minutes': 75, 'age_rating': 10,
        'complexity_rating': Decimal('2.33'), 'bgg_id': 13, 'bgg_rating': Decimal('7.10'), 'bgg_rank': 239,
        'youtube_tutorial_url': 'https://youtube.com/watch?v=o3WJsnDnbUc',
        'cover_image_url': 'https://picsum.photos/seed/catan/300/300',
        'categories': ['Strategy', 'Family'],
        'songs': [
            ('Settlers of the New World', 'Medieval', 190, 'suno_catan_001'),
            ("The Robber's March", 'Dark Ambient', 140, 'suno_catan_002'),
        ],
    },
    {
        'name': 'Wingspan',
        'description': 'A competitive, card-driven, engine-building game where players are '
                       'bird enthusiasts attracting birds to their wildlife preserves.',
        'rules_text': 'On your turn play a bird, gain food, lay eggs or draw bird cards. '
                      'Each habitat action grows stronger as you add birds to it. After '
                      'four rounds the player with the most points wins.',
        'min_players': 1, 'max_players': 5, 'playtime_minutes': 70, 'age_rating': 10,
        'complexity_rating': Decimal('2.44'), 'bgg_id': 266192, 'bgg_rating': Decimal('8.10'), 'bgg_rank': 25,
        'youtube_tutorial_url': 'https://youtube.com/watch?v=xcQ77lmOzog',
        'cover_image_url': 'https://picsum.photos/seed/wingspan/300/300',
        'categories': ['Strategy', 'Euro Game'],
        'songs': [
            ('Songbird Symphony', 'Classical', 200, 'suno_wingspan_001'),
            ('Migration Dreams', 'Ambient', 185, 'suno_wingspan_002'),
        ],
    },
]

RATED_SONGS = 6


def is_seeded(db) -> bool:
    """Return True when at least one game exists."""
    return db.query(Game.id).first() is not None


def seed_database(db, rng: Optional[random.Random] = None) -> Dict[str, int]:
    """Insert the demo catalog.

    Args:
        db:  SQLAlchemy session.
        rng: Random source for the sample ratings (seeded for reproducibility
             when omitted).

    Returns:
        Row counts per table, e.g. ``{"categories": 6, "games": 4, ...}``.
    """
    rng = rng or random.Random(2022)
    with database.atomic(db):
        categories = {name: Category(name=name, description=desc) for name, desc in CATEGORIES}
        db.add_all(categories.values())

        songs = []
        links = 0
        for entry in GAMES:
            values = {k: v for k, v in entry.items() if k not in ('categories', 'songs')}
            game = Game(**values)
            game.categories = [categories[name] for name in entry['categories']]
            links += len(entry['categories'])
            for title, genre, duration, track_id in entry['songs']:
                song = Song(
                    title=title,
                    description=f"{genre} theme for {entry['name']}",
                    suno_track_id=track_id,
                    audio_url=f"https://cdn.example.com/boardtunes/{track_id}.mp3",
                    duration_seconds=duration,
                    genre=genre,
                )
                game.songs.append(song)
                songs.append(song)
            db.add(game)
        db.flush()

        ratings = 0
        for song in songs[:RATED_SONGS]:
            raters = rng.sample(range(1, 255), rng.randint(3, 5))
            for octet in raters:
                db.add(SongRating(song_id=song.id, user_ip=f"192.168.1.{octet}",
                                  rating=rng.randint(1, 5)))
                ratings += 1

    summary = {
        'categories': len(categories),
        'games': len(GAMES),
        'game_categories': links,
        'songs': len(songs),
        'ratings': ratings,
    }
    logger.info("Database seeded: %s", summary)
    return summary


def seed_if_empty(db) -> Optional[Dict[str, int]]:
    """Seed only when the catalog is empty; return the summary or ``None``."""
    if is_seeded(db):
        logger.info("Database already contains data, skipping seed")
        return None
    logger.info("Database is empty, running seed")
    return seed_database(db)
