"""Composition root for the CLI.

Builds the JSON stores, the change feeds and buyer sessions from
``Settings``.  Nothing outside ``infrastructure`` imports this module.
"""

from __future__ import annotations

from functools import lru_cache

from tiffin.application.session import BuyerSession
from tiffin.application.track_orders import RetryPolicy
from tiffin.infrastructure.config import Settings, load_settings
from tiffin.infrastructure.location.fixed_location_provider import FixedLocationProvider
from tiffin.infrastructure.persistence.json_catalog_repository import (
    JsonDishRepository,
    JsonSellerRepository,
)
from tiffin.infrastructure.persistence.json_order_store import JsonOrderStore
from tiffin.infrastructure.realtime.in_memory_feed import InMemoryOrderChangeFeed
from tiffin.infrastructure.realtime.polling_feed import PollingOrderChangeFeed


@lru_cache(maxsize=1)
def settings() -> Settings:
    return load_settings()


@lru_cache(maxsize=1)
def change_feed() -> InMemoryOrderChangeFeed:
    return InMemoryOrderChangeFeed()


def dish_repository() -> JsonDishRepository:
    return JsonDishRepository(settings().data_dir / "dishes.json")


def seller_repository() -> JsonSellerRepository:
    return JsonSellerRepository(settings().data_dir / "sellers.json")


def order_store() -> JsonOrderStore:
    return JsonOrderStore(settings().data_dir / "orders.json", feed=change_feed())


def location_provider() -> FixedLocationProvider:
    return FixedLocationProvider(settings().buyer_location)


def buyer_session(buyer_id: str | None) -> BuyerSession:
    return BuyerSession(buyer_id, seller_repository(), settings().fees)


def retry_policy() -> RetryPolicy:
    s = settings()
    return RetryPolicy(
        initial_delay=s.feed_retry_delay,
        max_delay=s.feed_max_retry_delay,
        max_attempts=s.feed_max_retries,
    )


def polling_feed(interval: float = 2.0) -> PollingOrderChangeFeed:
    return PollingOrderChangeFeed(order_store(), interval=interval)
