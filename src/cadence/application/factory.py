"""
Store Factory
Centralizes the logic for selecting the card store and random source.
"""

import logging

from cadence.application.config import AppConfig
from cadence.domain.ports import CardStore, RandomSource
from cadence.infrastructure.adapters.memory_store import InMemoryCardStore
from cadence.infrastructure.adapters.rest_store import RestCardStore
from cadence.infrastructure.adapters.yaml_store import YamlCardStore
from cadence.infrastructure.clock import PythonRandomSource

logger = logging.getLogger(__name__)


def get_card_store(config: AppConfig) -> CardStore:
    """
    Returns the CardStore implementation selected by config.backend.
    """
    if config.backend == "rest":
        if not config.rest_url:
            raise ValueError("backend 'rest' requires rest_url (CADENCE_REST_URL)")
        logger.debug(f"Store: REST at {config.rest_url}")
        return RestCardStore(url=config.rest_url, api_key=config.rest_api_key)

    if config.backend == "memory":
        logger.debug("Store: in-memory")
        return InMemoryCardStore()

    logger.debug(f"Store: YAML file {config.store_path}")
    return YamlCardStore(config.store_path)


def get_random_source(config: AppConfig) -> RandomSource:
    return PythonRandomSource(seed=config.seed)
