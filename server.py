#!/usr/bin/env python3
"""
BoardTunes HTTP API.

Every remote procedure the front-end calls is exposed as ``/api/<procedureName>``:
queries use GET (arguments in the query string or path), mutations use POST
with a JSON body.  Errors are returned as ``{"error": "<message>"}`` with a
status code derived from the exception type.
"""

import logging
import os
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Dict

from dotenv import load_dotenv
from flask import Flask, jsonify, request

load_dotenv()

import boardtunes
import database
import seed
from app.errors import ExternalStatsError, NotFoundError, StoreError, ValidationError
from app.services import CategoryService, GameService, RatingService, SearchService, SongService
from bgg_client import BGGClient
from openapi_spec import build_spec

config = boardtunes.load_config(os.getenv('BOARDTUNES_CONFIG', 'config.json'))

# Initialize logging early so database module logs are captured
boardtunes.setup_logging(config['log_level'])
server_logger = logging.getLogger('boardtunes.server')
try:
    os.makedirs('logs', exist_ok=True)
    fh = logging.FileHandler('logs/boardtunes_server.log')
    fh.setFormatter(logging.Formatter('[%(asctime)s] %(levelname)s %(name)s: %(message)s'))
    fh.setLevel(getattr(logging, str(config['log_level']).upper(), logging.INFO))
    logging.getLogger('boardtunes').addHandler(fh)
except OSError:
    server_logger.warning('Could not create log file handler')

if config['database_url'] or config['db_timeout'] != database.DB_TIMEOUT:
    database.configure(config['database_url'], config['db_timeout'])

app = Flask(__name__)

game_service = GameService(bgg_client=BGGClient(api_token=config['bgg_api_token']))
search_service = SearchService()
song_service = SongService()
rating_service = RatingService()
category_service = CategoryService()


class DatabaseUnavailableError(StoreError):
    """Raised when no database engine is configured."""


@contextmanager
def db_session():
    """Yield a request-scoped session and always close it."""
    if database.SessionLocal is None:
        raise DatabaseUnavailableError('Database not available')
    db = database.SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _json_body() -> Dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    return data


# ===========================================================================================
# Error handlers
# ===========================================================================================

@app.errorhandler(ValidationError)
def handle_validation_error(e):
    return jsonify({'error': str(e)}), 400


@app.errorhandler(NotFoundError)
def handle_not_found(e):
    return jsonify({'error': str(e)}), 404


@app.errorhandler(ExternalStatsError)
def handle_external_stats_error(e):
    return jsonify({'error': str(e)}), 502


@app.errorhandler(DatabaseUnavailableError)
def handle_database_unavailable(e):
    return jsonify({'error': 'Database not available'}), 503


@app.errorhandler(StoreError)
def handle_store_error(e):
    server_logger.error(f"Database error on {request.path}: {e}")
    return jsonify({'error': 'Database error'}), 500


# ===========================================================================================
# Health & docs
# ===========================================================================================

@app.route('/api/healthcheck')
def api_healthcheck():
    """Liveness probe"""
    return jsonify({'status': 'ok', 'timestamp': datetime.now(timezone.utc).isoformat()})


@app.route('/api/openapi.json')
def api_openapi_spec():
    """OpenAPI 3.0 description of this API"""
    return jsonify(build_spec(server_url=request.host_url.rstrip('/')))


# ===========================================================================================
# Games
# ===========================================================================================

@app.route('/api/createGame', methods=['POST'])
def api_create_game():
    """createGame: insert a game and link its categories"""
    data = _json_body()
    with db_session() as db:
        return jsonify(game_service.create(db, data)), 201


@app.route('/api/getGames')
def api_get_games():
    """getGames: every game in the catalog"""
    with db_session() as db:
        return jsonify(game_service.list(db))


@app.route('/api/getGameById/<int:game_id>')
def api_get_game_by_id(game_id):
    """getGameById: one game with its songs and categories"""
    with db_session() as db:
        return jsonify(game_service.get_detail(db, game_id))


_SEARCH_INT_ARGS = ('min_players', 'max_players', 'min_playtime', 'max_playtime',
                    'min_age', 'limit', 'offset')
_SEARCH_FLOAT_ARGS = ('complexity_min', 'complexity_max')
_SEARCH_TEXT_ARGS = ('query', 'sort_by', 'sort_order')


def _search_args(args) -> Dict:
    """Convert query-string arguments into a typed filters dict."""
    filters: Dict = {}
    for key in _SEARCH_TEXT_ARGS:
        if args.get(key):
            filters[key] = args.get(key)
    for key in _SEARCH_INT_ARGS + _SEARCH_FLOAT_ARGS:
        raw = args.get(key)
        if raw in (None, ''):
            continue
        convert = int if key in _SEARCH_INT_ARGS else float
        try:
            filters[key] = convert(raw)
        except ValueError:
            kind = 'an integer' if convert is int else 'a number'
            raise ValidationError(f"{key} must be {kind}")

    raw_ids = []
    for value in args.getlist('category_ids'):
        raw_ids.extend(part for part in value.split(',') if part.strip())
    if raw_ids:
        try:
            filters['category_ids'] = [int(part) for part in raw_ids]
        except ValueError:
            raise ValidationError('category_ids must be a list of integers')
    return filters


@app.route('/api/searchGames', methods=['GET', 'POST'])
def api_search_games():
    """searchGames: filtered, sorted, paginated game list"""
    filters = _json_body() if request.method == 'POST' else _search_args(request.args)
    with db_session() as db:
        return jsonify(search_service.search(db, filters))


@app.route('/api/updateGame', methods=['POST'])
def api_update_game():
    """updateGame: partial update; omitted fields are left untouched"""
    data = _json_body()
    with db_session() as db:
        return jsonify(game_service.update(db, data))


@app.route('/api/deleteGame/<int:game_id>', methods=['POST'])
def api_delete_game(game_id):
    """deleteGame: remove a game with its songs, ratings and category links"""
    with db_session() as db:
        return jsonify({'success': game_service.delete(db, game_id)})


@app.route('/api/getFeaturedGames')
def api_get_featured_games():
    """getFeaturedGames: top rated, ranked games"""
    with db_session() as db:
        return jsonify(game_service.featured(db))


@app.route('/api/updateExternalStats/<int:game_id>', methods=['POST'])
def api_update_external_stats(game_id):
    """updateExternalStats: refresh BGG rating and rank"""
    with db_session() as db:
        return jsonify(game_service.update_external_stats(db, game_id))


# ===========================================================================================
# Songs & ratings
# ===========================================================================================

@app.route('/api/createSong', methods=['POST'])
def api_create_song():
    """createSong: attach a song to a game"""
    data = _json_body()
    with db_session() as db:
        return jsonify(song_service.create(db, data)), 201


@app.route('/api/getSongsByGame/<int:game_id>')
def api_get_songs_by_game(game_id):
    """getSongsByGame: songs of a game with their rating summary"""
    with db_session() as db:
        return jsonify(song_service.list_for_game(db, game_id))


@app.route('/api/rateSong', methods=['POST'])
def api_rate_song():
    """rateSong: rate a song 1-5; the caller's address identifies the rater by default"""
    data = _json_body()
    if not data.get('user_ip'):
        data['user_ip'] = request.remote_addr
    with db_session() as db:
        return jsonify(rating_service.rate(db, data))


@app.route('/api/getSongRatings/<int:song_id>')
def api_get_song_ratings(song_id):
    """getSongRatings: average and count of a song's ratings"""
    with db_session() as db:
        return jsonify(rating_service.song_ratings(db, song_id))


@app.route('/api/getGameRatings/<int:game_id>')
def api_get_game_ratings(game_id):
    """getGameRatings: average and count across all songs of a game"""
    with db_session() as db:
        return jsonify(rating_service.game_ratings(db, game_id))


# ===========================================================================================
# Categories
# ===========================================================================================

@app.route('/api/createCategory', methods=['POST'])
def api_create_category():
    """createCategory: add a category"""
    data = _json_body()
    with db_session() as db:
        return jsonify(category_service.create(db, data)), 201


@app.route('/api/getCategories')
def api_get_categories():
    """getCategories: all categories ordered by name"""
    with db_session() as db:
        return jsonify(category_service.list(db))


# ===========================================================================================
# Startup
# ===========================================================================================

def prepare_database(seed_on_start: bool = False) -> bool:
    """Create tables and optionally seed an empty catalog.

    A seeding failure is logged and does not stop the server.
    """
    if not database.init_db():
        server_logger.warning('Database initialization reported failure')
        return False
    if seed_on_start:
        try:
            with db_session() as db:
                seed.seed_if_empty(db)
        except StoreError as e:
            server_logger.error(f"Failed to seed database: {e}")
    return True


def run(host: str = '0.0.0.0', port: int = None) -> None:
    port = port or config['server_port']
    prepare_database(config['seed_on_start'])
    server_logger.info(f"BoardTunes API listening on {host}:{port}")
    app.run(host=host, port=port)


if __name__ == '__main__':
    run()
