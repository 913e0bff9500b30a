"""
REST Card Store — PostgREST-style HTTP API (e.g. a Supabase project).

Expects a ``cards`` table with a ``deck_id`` foreign key to ``decks``, which
carries the owning ``user_id``.
"""

import logging
from typing import Any

import httpx

from cadence.domain.constants import REQUEST_TIMEOUT
from cadence.domain.models import Card, CardStats
from cadence.domain.ports import CardStore

logger = logging.getLogger(__name__)


class RestCardStore(CardStore):
    def __init__(
        self,
        url: str,
        api_key: str | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        """
        Args:
            url: REST root, e.g. ``https://<project>.supabase.co/rest/v1``.
            api_key: Sent as ``apikey`` and bearer token when set.
            client: Optional pre-configured client (tests inject a mock transport).
        """
        self.url = url.rstrip("/")
        self.api_key = api_key
        self._client = client

    @property
    def headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["apikey"] = self.api_key
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def fetch_cards_for_user(
        self, user_id: str, deck_id: str | None = None
    ) -> list[Card]:
        params = {
            "select": "*,decks!inner(user_id,name)",
            "decks.user_id": f"eq.{user_id}",
        }
        if deck_id is not None:
            params["deck_id"] = f"eq.{deck_id}"

        try:
            resp = await self._get_client().get(
                f"{self.url}/cards", params=params, headers=self.headers
            )
            resp.raise_for_status()
            rows: list[dict[str, Any]] = resp.json()
        except httpx.HTTPError as e:
            logger.error(f"Failed to fetch cards for user {user_id}: {e}")
            raise ConnectionError(f"card store at {self.url} is unreachable: {e}") from e
        except ValueError as e:
            logger.error(f"Card store at {self.url} returned invalid JSON: {e}")
            raise

        cards = []
        for row in rows:
            try:
                cards.append(Card.from_row(row))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed card row {row.get('id')}: {e}")
        return cards

    async def update_card_stats(self, card_id: str, stats: CardStats) -> bool:
        # PATCH with absolute values, so a retried write is harmless
        try:
            resp = await self._get_client().patch(
                f"{self.url}/cards",
                params={"id": f"eq.{card_id}"},
                json=stats.to_row(),
                headers={**self.headers, "Prefer": "return=minimal"},
            )
            resp.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning(f"Failed to update card {card_id}: {e}")
            return False
        return True

    async def aclose(self) -> None:
        """Close the HTTP client and its connection pool."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=REQUEST_TIMEOUT)
        return self._client
