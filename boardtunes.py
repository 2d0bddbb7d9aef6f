#!/usr/bin/env python3
"""
BoardTunes - Board game catalog with AI-generated soundtracks.
Command-line entry point: database setup, demo seeding, catalog search and the API server.
"""

import argparse
import json
import logging
import os
import sys
from typing import Dict, List, Optional

from colorama import init, Fore, Style

# Initialize colorama for cross-platform colored terminal output
init(autoreset=True)

# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------

def setup_logging(level: str = 'WARNING') -> logging.Logger:
    """Configure the root BoardTunes logger.

    Args:
        level: Log level string (DEBUG, INFO, WARNING, ERROR, CRITICAL).
               Defaults to WARNING so normal use is quiet.

    Returns:
        Configured logger instance.
    """
    numeric = getattr(logging, level.upper(), logging.WARNING)
    logger = logging.getLogger('boardtunes')
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter('[%(levelname)s] %(name)s: %(message)s'))
        logger.addHandler(handler)
    logger.setLevel(numeric)
    return logger


logger = setup_logging()

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

DEFAULT_CONFIG = {
    'database_url': None,   # None keeps database.DATABASE_URL
    'db_timeout': 10,
    'log_level': 'INFO',
    'bgg_api_token': None,
    'server_port': 2022,
    'seed_on_start': False,
}

_TRUTHY = {'1', 'true', 'yes', 'on'}


def load_config(config_path: str = 'config.json') -> Dict:
    """Load configuration from an optional JSON file with environment variable support.

    Environment variables take precedence over config file values:
    - DATABASE_URL overrides database_url
    - BOARDTUNES_DB_TIMEOUT overrides db_timeout
    - BOARDTUNES_LOG_LEVEL overrides log_level
    - BGG_API_TOKEN overrides bgg_api_token
    - SERVER_PORT overrides server_port
    - BOARDTUNES_SEED_ON_START overrides seed_on_start

    A missing or unreadable config file is not an error; defaults apply.
    """
    config = dict(DEFAULT_CONFIG)
    if config_path and os.path.exists(config_path):
        try:
            with open(config_path, 'r') as f:
                config.update(json.load(f))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Could not load %s: %s", config_path, e)

    if os.getenv('DATABASE_URL'):
        config['database_url'] = os.getenv('DATABASE_URL')
    if os.getenv('BOARDTUNES_DB_TIMEOUT'):
        config['db_timeout'] = os.getenv('BOARDTUNES_DB_TIMEOUT')
    if os.getenv('BOARDTUNES_LOG_LEVEL'):
        config['log_level'] = os.getenv('BOARDTUNES_LOG_LEVEL')
    if os.getenv('BGG_API_TOKEN'):
        config['bgg_api_token'] = os.getenv('BGG_API_TOKEN')
    if os.getenv('SERVER_PORT'):
        config['server_port'] = os.getenv('SERVER_PORT')
    if os.getenv('BOARDTUNES_SEED_ON_START'):
        config['seed_on_start'] = os.getenv('BOARDTUNES_SEED_ON_START').lower() in _TRUTHY

    try:
        config['db_timeout'] = int(config['db_timeout'])
        config['server_port'] = int(config['server_port'])
    except (TypeError, ValueError):
        raise ValueError("db_timeout and server_port must be integers")
    return config


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

def _open_session(config: Dict):
    import database
    if config.get('database_url') or config.get('db_timeout') != database.DB_TIMEOUT:
        database.configure(config.get('database_url'), config.get('db_timeout'))
    if database.SessionLocal is None:
        print(f"{Fore.RED}Error: Database not available. Check your DATABASE_URL environment variable.")
        sys.exit(1)
    return database, database.SessionLocal()


def print_games(games: List[Dict]) -> None:
    """Print one line per game."""
    if not games:
        print(f"{Fore.YELLOW}No games found.")
        return
    for game in games:
        rating = f"{game['bgg_rating']:.2f}" if game['bgg_rating'] is not None else '-'
        print(f"{Fore.CYAN}{Style.BRIGHT}{game['name']}{Style.RESET_ALL} "
              f"(#{game['id']})  {game['min_players']}-{game['max_players']} players, "
              f"{game['playtime_minutes']} min, age {game['age_rating']}+, "
              f"complexity {game['complexity_rating']:.2f}, BGG {rating}")


def cmd_init_db(config: Dict) -> int:
    database, db = _open_session(config)
    db.close()
    if database.init_db():
        print(f"{Fore.GREEN}✓ Database tables created")
        return 0
    print(f"{Fore.RED}✗ Failed to create database tables")
    return 1


def cmd_seed(config: Dict, force: bool = False) -> int:
    import seed
    database, db = _open_session(config)
    try:
        database.init_db()
        summary = seed.seed_database(db) if force else seed.seed_if_empty(db)
    finally:
        db.close()
    if summary is None:
        print(f"{Fore.YELLOW}Database already contains data, skipping seed.")
    else:
        print(f"{Fore.GREEN}✓ Seeded: " + ', '.join(f"{v} {k}" for k, v in summary.items()))
    return 0


def cmd_search(config: Dict, filters: Dict) -> int:
    from app.errors import BoardTunesError
    from app.services import SearchService
    _, db = _open_session(config)
    try:
        print_games(SearchService().search(db, filters))
    except BoardTunesError as e:
        print(f"{Fore.RED}Error: {e}")
        return 1
    finally:
        db.close()
    return 0


def cmd_featured(config: Dict) -> int:
    from app.errors import BoardTunesError
    from app.services import GameService
    _, db = _open_session(config)
    try:
        print_games(GameService().featured(db))
    except BoardTunesError as e:
        print(f"{Fore.RED}Error: {e}")
        return 1
    finally:
        db.close()
    return 0


def cmd_serve(config: Dict, host: str, port: Optional[int]) -> int:
    import server
    server.run(host=host, port=port or config['server_port'])
    return 0


def _search_filters(args) -> Dict:
    filters = {
        'query': args.query,
        'min_players': args.players,
        'max_players': args.players,
        'max_playtime': args.max_playtime,
        'min_age': args.age,
        'complexity_min': args.complexity_min,
        'complexity_max': args.complexity_max,
        'sort_by': args.sort_by,
        'sort_order': args.sort_order,
        'limit': args.limit,
    }
    if args.category:
        filters['category_ids'] = [int(c) for c in args.category.split(',') if c.strip()]
    return {k: v for k, v in filters.items() if v is not None}


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    parser = argparse.ArgumentParser(
        description='BoardTunes - board game catalog with AI-generated soundtracks',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python3 boardtunes.py init-db                  # Create the database tables
  python3 boardtunes.py seed                     # Load demo games when the catalog is empty
  python3 boardtunes.py search --query catan     # Search the catalog by name
  python3 boardtunes.py search --players 2 --sort-by bgg_rating
  python3 boardtunes.py serve --port 2022        # Run the API server
        """
    )
    parser.add_argument(
        '--config', '-c',
        default='config.json',
        help='Path to config file (default: config.json)'
    )
    sub = parser.add_subparsers(dest='command', required=True)

    sub.add_parser('init-db', help='Create database tables')

    seed_parser = sub.add_parser('seed', help='Insert demo data')
    seed_parser.add_argument('--force', action='store_true',
                             help='Seed even if the catalog already has games')

    search = sub.add_parser('search', help='Search the game catalog')
    search.add_argument('--query', '-q', help='Case-insensitive name substring')
    search.add_argument('--category', help='Category ids, comma-separated (e.g. "1,3")')
    search.add_argument('--players', type=int, help='Games playable with this many players')
    search.add_argument('--max-playtime', type=int, help='Maximum playtime in minutes')
    search.add_argument('--age', type=int, help='Games suitable for this age')
    search.add_argument('--complexity-min', type=float, help='Minimum complexity (1-5)')
    search.add_argument('--complexity-max', type=float, help='Maximum complexity (1-5)')
    search.add_argument('--sort-by', help='name, bgg_rating, bgg_rank, playtime_minutes or created_at')
    search.add_argument('--sort-order', choices=['asc', 'desc'])
    search.add_argument('--limit', type=int, help='Maximum results (1-100, default 20)')

    sub.add_parser('featured', help='Show featured games')

    serve = sub.add_parser('serve', help='Run the HTTP API server')
    serve.add_argument('--host', default='0.0.0.0')
    serve.add_argument('--port', type=int, help='Port (default: SERVER_PORT or 2022)')

    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except ValueError as e:
        print(f"{Fore.RED}Error: {e}")
        return 1
    setup_logging(config['log_level'])

    if args.command == 'init-db':
        return cmd_init_db(config)
    if args.command == 'seed':
        return cmd_seed(config, force=args.force)
    if args.command == 'search':
        try:
            filters = _search_filters(args)
        except ValueError:
            print(f"{Fore.RED}Error: --category must be comma-separated integers")
            return 1
        return cmd_search(config, filters)
    if args.command == 'featured':
        return cmd_featured(config)
    return cmd_serve(config, args.host, args.port)


if __name__ == '__main__':
    sys.exit(main())
