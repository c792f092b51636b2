"""
Service Factory
Centralizes building the store and services from configuration.
"""

from taskdeck.application.collection_service import CollectionService
from taskdeck.application.config import AppConfig
from taskdeck.application.review_service import ReviewService
from taskdeck.domain.ports import CardStore
from taskdeck.infrastructure.adapters.direct_store import DirectCardStore


def get_card_store(config: AppConfig) -> CardStore:
    return DirectCardStore(collection_path=config.collection_path)


def get_review_service(config: AppConfig) -> ReviewService:
    return ReviewService(get_card_store(config), blocking_deck_id=config.blocking_deck_id)


def get_collection_service(config: AppConfig) -> CollectionService:
    return CollectionService(get_card_store(config))
