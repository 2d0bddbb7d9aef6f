#!/usr/bin/env python3
"""
Tests for configuration loading and the command-line interface in boardtunes.py.

Run with:
    python -m pytest tests/test_cli.py
"""
import io
import json
import os
import shutil
import sys
import tempfile
import unittest
from unittest.mock import patch

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import boardtunes
import database
import seed
from app.errors import StoreError

_ENV_KEYS = ('DATABASE_URL', 'BOARDTUNES_DB_TIMEOUT', 'BOARDTUNES_LOG_LEVEL',
             'BGG_API_TOKEN', 'SERVER_PORT', 'BOARDTUNES_SEED_ON_START')


class CleanEnvMixin(unittest.TestCase):
    """Removes BoardTunes environment variables and works in a temp directory."""

    def setUp(self):
        self._saved_env = {k: os.environ.pop(k) for k in _ENV_KEYS if k in os.environ}
        self.tmp = tempfile.mkdtemp()
        self._orig = os.getcwd()
        os.chdir(self.tmp)

    def tearDown(self):
        os.chdir(self._orig)
        shutil.rmtree(self.tmp, ignore_errors=True)
        for key in _ENV_KEYS:
            os.environ.pop(key, None)
        os.environ.update(self._saved_env)


# ===========================================================================
# load_config
# ===========================================================================

class TestLoadConfig(CleanEnvMixin):

    def test_defaults_without_file(self):
        config = boardtunes.load_config('missing.json')
        self.assertEqual(config, boardtunes.DEFAULT_CONFIG)

    def test_file_values_applied(self):
        with open('config.json', 'w') as f:
            json.dump({'server_port': 8080, 'log_level': 'DEBUG'}, f)
        config = boardtunes.load_config('config.json')
        self.assertEqual(config['server_port'], 8080)
        self.assertEqual(config['log_level'], 'DEBUG')
        self.assertEqual(config['db_timeout'], 10)

    def test_environment_overrides_file(self):
        with open('config.json', 'w') as f:
            json.dump({'server_port': 8080}, f)
        os.environ.update({
            'SERVER_PORT': '9090',
            'DATABASE_URL': 'sqlite:///boardtunes.db',
            'BOARDTUNES_DB_TIMEOUT': '3',
            'BGG_API_TOKEN': 'tok',
            'BOARDTUNES_SEED_ON_START': 'yes',
        })
        config = boardtunes.load_config('config.json')
        self.assertEqual(config['server_port'], 9090)
        self.assertEqual(config['database_url'], 'sqlite:///boardtunes.db')
        self.assertEqual(config['db_timeout'], 3)
        self.assertEqual(config['bgg_api_token'], 'tok')
        self.assertTrue(config['seed_on_start'])

    def test_seed_flag_false_values(self):
        os.environ['BOARDTUNES_SEED_ON_START'] = 'off'
        self.assertFalse(boardtunes.load_config(None)['seed_on_start'])

    def test_corrupt_file_falls_back_to_defaults(self):
        with open('config.json', 'w') as f:
            f.write('NOT JSON')
        self.assertEqual(boardtunes.load_config('config.json')['server_port'], 2022)

    def test_non_integer_port_raises(self):
        os.environ['SERVER_PORT'] = 'http'
        with self.assertRaises(ValueError):
            boardtunes.load_config(None)


class TestSetupLogging(unittest.TestCase):

    def test_sets_level(self):
        logger = boardtunes.setup_logging('DEBUG')
        self.assertEqual(logger.name, 'boardtunes')
        self.assertEqual(logger.level, 10)
        boardtunes.setup_logging('WARNING')

    def test_unknown_level_falls_back_to_warning(self):
        self.assertEqual(boardtunes.setup_logging('LOUD').level, 30)

    def test_handler_added_once(self):
        boardtunes.setup_logging()
        count = len(boardtunes.setup_logging().handlers)
        boardtunes.setup_logging()
        self.assertEqual(len(boardtunes.setup_logging().handlers), count)


# ===========================================================================
# main
# ===========================================================================

class TestMain(CleanEnvMixin):

    def setUp(self):
        super().setUp()
        engine = database.make_engine('sqlite:///:memory:')
        database.Base.metadata.create_all(engine)
        self.factory = database.make_session_factory(engine)
        for patcher in (patch.object(database, 'SessionLocal', self.factory),
                        patch.object(database, 'engine', engine),
                        patch.object(database, 'configure')):
            patcher.start()
            self.addCleanup(patcher.stop)

    def _run(self, argv):
        buf = io.StringIO()
        with patch('sys.stdout', buf):
            code = boardtunes.main(argv)
        return code, buf.getvalue()

    def test_init_db(self):
        code, out = self._run(['init-db'])
        self.assertEqual(code, 0)
        self.assertIn('Database tables created', out)

    def test_seed_then_skip(self):
        code, out = self._run(['seed'])
        self.assertEqual(code, 0)
        self.assertIn('Seeded', out)
        code, out = self._run(['seed'])
        self.assertIn('already contains data', out)

    def test_search_prints_matches(self):
        db = self.factory()
        seed.seed_database(db)
        db.close()
        code, out = self._run(['search', '--query', 'catan'])
        self.assertEqual(code, 0)
        self.assertIn('Catan', out)
        self.assertNotIn('Wingspan', out)

    def test_search_no_results(self):
        code, out = self._run(['search', '--query', 'nothing'])
        self.assertEqual(code, 0)
        self.assertIn('No games found', out)

    def test_search_invalid_filter(self):
        code, out = self._run(['search', '--limit', '0'])
        self.assertEqual(code, 1)
        self.assertIn('limit', out)

    def test_search_bad_category(self):
        code, out = self._run(['search', '--category', 'a,b'])
        self.assertEqual(code, 1)

    def test_featured(self):
        db = self.factory()
        seed.seed_database(db)
        db.close()
        code, out = self._run(['featured'])
        self.assertEqual(code, 0)
        self.assertLess(out.index('Wingspan'), out.index('Catan'))

    def test_featured_store_error_reported(self):
        with patch('app.services.GameService.featured',
                   side_effect=StoreError('connection reset')):
            code, out = self._run(['featured'])
        self.assertEqual(code, 1)
        self.assertIn('Error: connection reset', out)

    def test_missing_database_exits(self):
        with patch.object(database, 'SessionLocal', None):
            with self.assertRaises(SystemExit):
                self._run(['featured'])

    def test_serve_delegates_to_server(self):
        with patch('server.run') as run:
            code, _ = self._run(['serve', '--port', '8123'])
        self.assertEqual(code, 0)
        run.assert_called_once_with(host='0.0.0.0', port=8123)


if __name__ == '__main__':
    unittest.main()
