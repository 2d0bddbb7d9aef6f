"""
BoardTunes application package.

Layered architecture:

  app/repositories/  pure I/O: SQLAlchemy queries against the ``database`` models.
  app/services/      business logic and transaction boundaries.
  app/schemas.py     typed request inputs parsed from JSON.
  app/serializers.py ORM rows to JSON-ready dicts.

``server.py`` is the integration point: it creates one instance of each
service and route handlers call them with a per-request session.
"""
