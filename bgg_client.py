"""
bgg_client.py
=============
Lightweight wrapper around the BoardGameGeek XML API 2 used by BoardTunes to
refresh the community rating and overall rank stored on each game.

Authentication
--------------
BoardGameGeek asks registered applications to send a bearer token:

    GET https://boardgamegeek.com/xmlapi2/thing?id=<BGG_ID>&stats=1
        Authorization: Bearer <BGG_API_TOKEN>

The token is optional here; anonymous requests are sent without the header.

Usage
-----
::

    from bgg_client import BGGClient

    client = BGGClient(api_token="abc")
    client.get_stats(13)
    # {"bgg_id": 13, "rating": 7.1, "rank": 239}
"""

from __future__ import annotations

import logging
import os
import xml.etree.ElementTree as ET
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger('boardtunes.bgg')

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
_API_BASE = "https://boardgamegeek.com/xmlapi2"
_DEFAULT_TIMEOUT = 10  # seconds
# BGG answers 202 while it prepares a response; callers must try again later
_QUEUED_STATUS = 202


class BGGAPIError(Exception):
    """Raised when BoardGameGeek returns no usable stats."""


class BGGClient:
    """Minimal BoardGameGeek client for rating and rank lookups."""

    def __init__(
        self,
        api_token: Optional[str] = None,
        timeout: int = _DEFAULT_TIMEOUT,
        base_url: str = _API_BASE,
    ) -> None:
        """
        Args:
            api_token: Bearer token; falls back to ``BGG_API_TOKEN``.
            timeout:   HTTP request timeout in seconds.
            base_url:  XML API root (overridable for tests and mirrors).
        """
        self._api_token = api_token if api_token is not None else os.getenv('BGG_API_TOKEN')
        self._timeout = timeout
        self._base_url = base_url.rstrip('/')
        self.session = requests.Session()

    # ------------------------------------------------------------------
    # Public helpers
    # ------------------------------------------------------------------

    def get_stats(self, bgg_id: int) -> Dict[str, Any]:
        """Return the current rating and rank for *bgg_id*.

        Returns::

            {
              "bgg_id": 13,
              "rating": 7.1,   # community average, None if never rated
              "rank":   239,   # overall board game rank, None if "Not Ranked"
            }

        Raises:
            BGGAPIError: Network failure, non-200 status, queued response,
                         unparseable XML, or unknown *bgg_id*.
        """
        root = self._get_xml('/thing', params={'id': bgg_id, 'stats': 1})
        item = root.find('item')
        if item is None:
            raise BGGAPIError(f"BoardGameGeek has no item with id {bgg_id}")

        ratings = item.find('statistics/ratings')
        if ratings is None:
            raise BGGAPIError(f"BoardGameGeek item {bgg_id} has no statistics")

        rating = self._parse_float(ratings.find('average'))
        rank = None
        for node in ratings.findall('ranks/rank'):
            if node.get('name') == 'boardgame':
                rank = self._parse_int(node)
                break

        logger.debug("BGG stats for %s: rating=%s rank=%s", bgg_id, rating, rank)
        return {'bgg_id': bgg_id, 'rating': rating, 'rank': rank}

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _get_xml(self, path: str, params: Optional[Dict[str, Any]] = None) -> ET.Element:
        """Perform a GET request against the XML API and return the parsed root."""
        headers = {}
        if self._api_token:
            headers['Authorization'] = f"Bearer {self._api_token}"

        url = self._base_url + path
        try:
            resp = self.session.get(url, params=params or {}, headers=headers,
                                    timeout=self._timeout)
            resp.raise_for_status()
        except requests.HTTPError as exc:
            raise BGGAPIError(
                f"BoardGameGeek error {resp.status_code} for {path}"
            ) from exc
        except requests.RequestException as exc:
            raise BGGAPIError(f"Network error calling BoardGameGeek: {exc}") from exc

        if resp.status_code == _QUEUED_STATUS:
            raise BGGAPIError("BoardGameGeek queued the request; try again shortly")

        try:
            return ET.fromstring(resp.content)
        except ET.ParseError as exc:
            raise BGGAPIError(f"Malformed XML from BoardGameGeek: {exc}") from exc

    @staticmethod
    def _parse_float(node: Optional[ET.Element]) -> Optional[float]:
        if node is None:
            return None
        try:
            value = round(float(node.get('value', '')), 2)
        except ValueError:
            return None
        # BGG reports 0 for games nobody has rated
        return value or None

    @staticmethod
    def _parse_int(node: ET.Element) -> Optional[int]:
        try:
            return int(node.get('value', ''))
        except ValueError:
            return None  # "Not Ranked"
