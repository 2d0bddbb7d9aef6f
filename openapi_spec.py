"""
openapi_spec.py  -  BoardTunes OpenAPI 3.0 specification builder.

Returns a Python dict (compatible with ``json.dumps``) that describes every
procedure exposed by ``server.py``.

Usage (from server.py)::

    from openapi_spec import build_spec
    spec = build_spec(server_url="http://localhost:2022")
"""

from typing import Any, Dict, List


def _ref(name: str) -> Dict[str, str]:
    return {"$ref": f"#/components/schemas/{name}"}


def _array_of(name: str) -> Dict[str, Any]:
    return {"type": "array", "items": _ref(name)}


def _json_resp(description: str, schema: Dict = None) -> Dict:
    if schema is None:
        schema = {"type": "object"}
    return {"description": description,
            "content": {"application/json": {"schema": schema}}}


def _error(description: str) -> Dict:
    return _json_resp(description, _ref("Error"))


def _body(schema_name: str) -> Dict:
    return {"required": True,
            "content": {"application/json": {"schema": _ref(schema_name)}}}


def _id_param(name: str) -> Dict:
    return {"name": name, "in": "path", "required": True,
            "schema": {"type": "integer"}}


def _query_param(name: str, schema: Dict, description: str = "") -> Dict:
    param = {"name": name, "in": "query", "required": False, "schema": schema}
    if description:
        param["description"] = description
    return param


_NULLABLE_URL = {"type": "string", "format": "uri", "nullable": True}


def _game_properties() -> Dict[str, Any]:
    return {
        "name":                 {"type": "string", "maxLength": 255, "example": "Catan"},
        "description":          {"type": "string"},
        "rules_text":           {"type": "string"},
        "min_players":          {"type": "integer", "minimum": 1, "example": 3},
        "max_players":          {"type": "integer", "minimum": 1, "example": 4},
        "playtime_minutes":     {"type": "integer", "minimum": 1, "example": 75},
        "age_rating":           {"type": "integer", "minimum": 0, "example": 10},
        "complexity_rating":    {"type": "number", "minimum": 1, "maximum": 5, "example": 2.33},
        "bgg_id":               {"type": "integer", "nullable": True, "example": 13},
        "amazon_link":          _NULLABLE_URL,
        "bol_link":             _NULLABLE_URL,
        "youtube_tutorial_url": _NULLABLE_URL,
        "cover_image_url":      _NULLABLE_URL,
    }


_CATEGORY_IDS = {"type": "array", "items": {"type": "integer"}}


def build_spec(server_url: str = "/") -> Dict[str, Any]:
    """Return the full OpenAPI 3.0 specification dict."""

    spec: Dict[str, Any] = {
        "openapi": "3.0.3",
        "info": {
            "title": "BoardTunes API",
            "version": "1.0.0",
            "description": (
                "Board game catalog with AI-generated soundtrack songs and per-listener "
                "song ratings.\n\n"
                "Queries are GET requests, mutations are POST requests with a JSON body. "
                "Errors are returned as `{\"error\": \"...\"}`."
            ),
        },
        "servers": [{"url": server_url, "description": "BoardTunes server"}],
        "tags": [
            {"name": "games",      "description": "Game catalog, search and featured games"},
            {"name": "songs",      "description": "Soundtrack songs attached to games"},
            {"name": "ratings",    "description": "Song ratings and aggregates"},
            {"name": "categories", "description": "Game categories"},
            {"name": "system",     "description": "Health check and API documentation"},
        ],
        "components": {"schemas": _build_schemas()},
        "paths": _build_paths(),
    }
    return spec


def _build_schemas() -> Dict[str, Any]:
    game_properties = _game_properties()
    required_game_fields: List[str] = [
        "name", "description", "rules_text", "min_players", "max_players",
        "playtime_minutes", "age_rating", "complexity_rating",
    ]
    timestamps = {
        "created_at": {"type": "string", "format": "date-time"},
        "updated_at": {"type": "string", "format": "date-time"},
    }
    return {
        "Error": {
            "type": "object",
            "properties": {"error": {"type": "string"}},
            "required": ["error"],
        },
        "Success": {
            "type": "object",
            "properties": {"success": {"type": "boolean", "example": True}},
        },
        "Game": {
            "type": "object",
            "properties": {
                "id": {"type": "integer"},
                **game_properties,
                "bgg_rating": {"type": "number", "nullable": True, "example": 7.1},
                "bgg_rank":   {"type": "integer", "nullable": True, "example": 239},
                **timestamps,
            },
        },
        "GameDetail": {
            "allOf": [
                _ref("Game"),
                {"type": "object", "properties": {
                    "songs":      _array_of("Song"),
                    "categories": _array_of("Category"),
                }},
            ],
        },
        "CreateGameInput": {
            "type": "object",
            "required": required_game_fields,
            "properties": {**game_properties, "category_ids": _CATEGORY_IDS},
        },
        "UpdateGameInput": {
            "type": "object",
            "required": ["id"],
            "description": "Omitted fields are left unchanged; null clears a nullable field. "
                           "category_ids replaces the whole category set.",
            "properties": {"id": {"type": "integer"}, **game_properties,
                           "category_ids": _CATEGORY_IDS},
        },
        "SearchGamesInput": {
            "type": "object",
            "properties": {
                "query":          {"type": "string"},
                "category_ids":   _CATEGORY_IDS,
                "min_players":    {"type": "integer", "minimum": 1},
                "max_players":    {"type": "integer", "minimum": 1},
                "min_playtime":   {"type": "integer", "minimum": 0},
                "max_playtime":   {"type": "integer", "minimum": 0},
                "min_age":        {"type": "integer", "minimum": 0},
                "complexity_min": {"type": "number", "minimum": 1, "maximum": 5},
                "complexity_max": {"type": "number", "minimum": 1, "maximum": 5},
                "sort_by":        {"type": "string", "enum": ["name", "bgg_rating", "bgg_rank",
                                                              "playtime_minutes", "created_at"]},
                "sort_order":     {"type": "string", "enum": ["asc", "desc"]},
                "limit":          {"type": "integer", "minimum": 1, "maximum": 100, "default": 20},
                "offset":         {"type": "integer", "minimum": 0, "default": 0},
            },
        },
        "Song": {
            "type": "object",
            "properties": {
                "id":               {"type": "integer"},
                "game_id":          {"type": "integer"},
                "title":            {"type": "string"},
                "description":      {"type": "string", "nullable": True},
                "suno_track_id":    {"type": "string"},
                "audio_url":        {"type": "string", "format": "uri"},
                "duration_seconds": {"type": "integer"},
                "genre":            {"type": "string", "nullable": True},
                "created_at":       {"type": "string", "format": "date-time"},
            },
        },
        "SongWithRatings": {
            "allOf": [
                _ref("Song"),
                {"type": "object", "properties": {
                    "average_rating": {"type": "number", "nullable": True,
                                       "description": "null when the song has no ratings"},
                    "total_ratings":  {"type": "integer"},
                }},
            ],
        },
        "CreateSongInput": {
            "type": "object",
            "required": ["game_id", "title", "suno_track_id", "audio_url", "duration_seconds"],
            "properties": {
                "game_id":          {"type": "integer"},
                "title":            {"type": "string", "maxLength": 255},
                "description":      {"type": "string", "nullable": True},
                "suno_track_id":    {"type": "string", "maxLength": 100},
                "audio_url":        {"type": "string", "format": "uri"},
                "duration_seconds": {"type": "integer", "minimum": 1},
                "genre":            {"type": "string", "maxLength": 100, "nullable": True},
            },
        },
        "SongRating": {
            "type": "object",
            "properties": {
                "id":      {"type": "integer"},
                "song_id": {"type": "integer"},
                "user_ip": {"type": "string"},
                "rating":  {"type": "integer", "minimum": 1, "maximum": 5},
                **timestamps,
            },
        },
        "RateSongInput": {
            "type": "object",
            "required": ["song_id", "rating"],
            "properties": {
                "song_id": {"type": "integer"},
                "rating":  {"type": "integer", "minimum": 1, "maximum": 5},
                "user_ip": {"type": "string", "maxLength": 45,
                            "description": "Defaults to the caller's address"},
            },
        },
        "RatingSummary": {
            "type": "object",
            "properties": {
                "average_rating": {"type": "number", "example": 4.25},
                "total_ratings":  {"type": "integer", "example": 4},
            },
        },
        "Category": {
            "type": "object",
            "properties": {
                "id":          {"type": "integer"},
                "name":        {"type": "string"},
                "description": {"type": "string", "nullable": True},
                "created_at":  {"type": "string", "format": "date-time"},
            },
        },
        "CreateCategoryInput": {
            "type": "object",
            "required": ["name"],
            "properties": {
                "name":        {"type": "string", "maxLength": 100},
                "description": {"type": "string", "nullable": True},
            },
        },
    }


def _build_paths() -> Dict[str, Any]:
    paths: Dict[str, Any] = {}

    # ------------------------------------------------------------------
    # Games
    # ------------------------------------------------------------------
    paths["/api/createGame"] = {
        "post": {
            "tags": ["games"],
            "summary": "Create a game and link its categories",
            "requestBody": _body("CreateGameInput"),
            "responses": {
                "201": _json_resp("Created game", _ref("Game")),
                "400": _error("Invalid input"),
                "404": _error("Unknown category id"),
            },
        }
    }
    paths["/api/getGames"] = {
        "get": {
            "tags": ["games"],
            "summary": "List every game",
            "responses": {"200": _json_resp("Games", _array_of("Game"))},
        }
    }
    paths["/api/getGameById/{game_id}"] = {
        "get": {
            "tags": ["games"],
            "summary": "Get a game with its songs and categories",
            "parameters": [_id_param("game_id")],
            "responses": {
                "200": _json_resp("Game detail", _ref("GameDetail")),
                "404": _error("Game not found"),
            },
        }
    }

    search_params = [
        _query_param("query", {"type": "string"}, "Case-insensitive name substring"),
        _query_param("category_ids", _CATEGORY_IDS,
                     "Repeat the parameter or pass a comma-separated list"),
    ]
    for name in ("min_players", "max_players", "min_playtime", "max_playtime",
                 "min_age", "limit", "offset"):
        search_params.append(_query_param(name, {"type": "integer"}))
    for name in ("complexity_min", "complexity_max"):
        search_params.append(_query_param(name, {"type": "number"}))
    search_params.append(_query_param("sort_by", {"type": "string"}))
    search_params.append(_query_param("sort_order", {"type": "string", "enum": ["asc", "desc"]}))

    search_responses = {
        "200": _json_resp("Matching games", _array_of("Game")),
        "400": _error("Invalid filter"),
    }
    paths["/api/searchGames"] = {
        "get": {
            "tags": ["games"],
            "summary": "Search games with filters, sorting and pagination",
            "parameters": search_params,
            "responses": search_responses,
        },
        "post": {
            "tags": ["games"],
            "summary": "Search games (filters as a JSON body)",
            "requestBody": _body("SearchGamesInput"),
            "responses": search_responses,
        },
    }
    paths["/api/updateGame"] = {
        "post": {
            "tags": ["games"],
            "summary": "Partially update a game",
            "requestBody": _body("UpdateGameInput"),
            "responses": {
                "200": _json_resp("Updated game", _ref("Game")),
                "400": _error("Invalid input"),
                "404": _error("Game or category not found"),
            },
        }
    }
    paths["/api/deleteGame/{game_id}"] = {
        "post": {
            "tags": ["games"],
            "summary": "Delete a game with its songs, ratings and category links",
            "description": "`success` is false when no game had the id.",
            "parameters": [_id_param("game_id")],
            "responses": {"200": _json_resp("Result", _ref("Success"))},
        }
    }
    paths["/api/getFeaturedGames"] = {
        "get": {
            "tags": ["games"],
            "summary": "Up to 10 ranked games rated 7.0 or higher",
            "responses": {"200": _json_resp("Featured games", _array_of("Game"))},
        }
    }
    paths["/api/updateExternalStats/{game_id}"] = {
        "post": {
            "tags": ["games"],
            "summary": "Refresh the BoardGameGeek rating and rank of a game",
            "parameters": [_id_param("game_id")],
            "responses": {
                "200": _json_resp("Updated game", _ref("Game")),
                "400": _error("Game has no BGG id"),
                "404": _error("Game not found"),
                "502": _error("BoardGameGeek request failed"),
            },
        }
    }

    # ------------------------------------------------------------------
    # Songs & ratings
    # ------------------------------------------------------------------
    paths["/api/createSong"] = {
        "post": {
            "tags": ["songs"],
            "summary": "Attach a soundtrack song to a game",
            "requestBody": _body("CreateSongInput"),
            "responses": {
                "201": _json_resp("Created song", _ref("Song")),
                "400": _error("Invalid input"),
                "404": _error("Game not found"),
            },
        }
    }
    paths["/api/getSongsByGame/{game_id}"] = {
        "get": {
            "tags": ["songs"],
            "summary": "List a game's songs with their rating summary",
            "parameters": [_id_param("game_id")],
            "responses": {
                "200": _json_resp("Songs", _array_of("SongWithRatings")),
                "404": _error("Game not found"),
            },
        }
    }
    paths["/api/rateSong"] = {
        "post": {
            "tags": ["ratings"],
            "summary": "Rate a song; rating again replaces the previous rating",
            "requestBody": _body("RateSongInput"),
            "responses": {
                "200": _json_resp("Stored rating", _ref("SongRating")),
                "400": _error("Invalid input"),
                "404": _error("Song not found"),
            },
        }
    }
    paths["/api/getSongRatings/{song_id}"] = {
        "get": {
            "tags": ["ratings"],
            "summary": "Average and count of a song's ratings",
            "parameters": [_id_param("song_id")],
            "responses": {"200": _json_resp("Summary", _ref("RatingSummary"))},
        }
    }
    paths["/api/getGameRatings/{game_id}"] = {
        "get": {
            "tags": ["ratings"],
            "summary": "Average and count of ratings across all songs of a game",
            "parameters": [_id_param("game_id")],
            "responses": {
                "200": _json_resp("Summary", _ref("RatingSummary")),
                "404": _error("Game not found"),
            },
        }
    }

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------
    paths["/api/createCategory"] = {
        "post": {
            "tags": ["categories"],
            "summary": "Create a category",
            "requestBody": _body("CreateCategoryInput"),
            "responses": {
                "201": _json_resp("Created category", _ref("Category")),
                "400": _error("Invalid input"),
            },
        }
    }
    paths["/api/getCategories"] = {
        "get": {
            "tags": ["categories"],
            "summary": "List categories ordered by name",
            "responses": {"200": _json_resp("Categories", _array_of("Category"))},
        }
    }

    # ------------------------------------------------------------------
    # System
    # ------------------------------------------------------------------
    paths["/api/healthcheck"] = {
        "get": {
            "tags": ["system"],
            "summary": "Liveness probe",
            "responses": {"200": _json_resp("Server is up", {
                "type": "object",
                "properties": {"status": {"type": "string", "example": "ok"},
                               "timestamp": {"type": "string", "format": "date-time"}},
            })},
        }
    }
    paths["/api/openapi.json"] = {
        "get": {
            "tags": ["system"],
            "summary": "OpenAPI 3.0 specification (JSON)",
            "responses": {"200": _json_resp("OpenAPI spec", {"type": "object"})},
        }
    }

    # Every database-backed procedure can report an unreachable store
    for path, operations in paths.items():
        if path in ("/api/healthcheck", "/api/openapi.json"):
            continue
        for operation in operations.values():
            operation["responses"]["500"] = _error("Database error")
            operation["responses"]["503"] = _error("Database not available")

    return paths
