"""
YAML Card Store — keeps decks and cards in a single YAML file.

Layout::

    decks:
      - id: greek
        name: Greek vocabulary
        user_id: local
        cards:
          - id: g1
            front: logos
            back: word
            interval: 3
            repetitions: 2
            ease_factor: 2.6
            next_review: 2026-10-20T09:00:00+00:00
"""

import logging
import os
import tempfile
from pathlib import Path
from typing import Any

import yaml

from cadence.domain.models import Card, CardStats
from cadence.domain.ports import CardStore

logger = logging.getLogger(__name__)


class YamlCardStore(CardStore):
    def __init__(self, path: Path):
        self.path = Path(path)

    async def fetch_cards_for_user(
        self, user_id: str, deck_id: str | None = None
    ) -> list[Card]:
        data = self._load()
        cards: list[Card] = []

        for deck in data.get("decks") or []:
            if not isinstance(deck, dict):
                continue
            if deck.get("user_id", user_id) != user_id:
                continue
            if deck_id is not None and str(deck.get("id")) != deck_id:
                continue

            for row in deck.get("cards") or []:
                if not isinstance(row, dict) or "id" not in row:
                    continue
                try:
                    cards.append(
                        Card.from_row(
                            {**row, "deck_id": deck.get("id"), "deck_name": deck.get("name")}
                        )
                    )
                except (TypeError, ValueError) as e:
                    logger.warning(f"Skipping malformed card {row.get('id')} in {self.path}: {e}")

        return cards

    async def update_card_stats(self, card_id: str, stats: CardStats) -> bool:
        try:
            data = self._load()
        except (OSError, ValueError):
            return False
        row = self._find_card(data, card_id)
        if row is None:
            logger.warning(f"Card {card_id} not found in {self.path}")
            return False

        row.update(stats.to_row())
        try:
            self._dump(data)
        except OSError as e:
            logger.warning(f"Failed to write {self.path}: {e}")
            return False
        return True

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            logger.debug(f"Card file {self.path} does not exist yet")
            return {}
        try:
            data = yaml.safe_load(self.path.read_text(encoding="utf-8"))
        except OSError as e:
            logger.error(f"Could not read card file {self.path}: {e}")
            raise
        except yaml.YAMLError as e:
            logger.error(f"Could not parse card file {self.path}: {e}")
            raise ValueError(f"{self.path} is not valid YAML: {e}") from e
        return data if isinstance(data, dict) else {}

    def _dump(self, data: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                yaml.safe_dump(data, f, sort_keys=False, allow_unicode=True)
            os.replace(tmp, self.path)
        except OSError:
            Path(tmp).unlink(missing_ok=True)
            raise

    @staticmethod
    def _find_card(data: dict[str, Any], card_id: str) -> dict[str, Any] | None:
        for deck in data.get("decks") or []:
            if not isinstance(deck, dict):
                continue
            for row in deck.get("cards") or []:
                if isinstance(row, dict) and str(row.get("id")) == card_id:
                    return row
        return None
