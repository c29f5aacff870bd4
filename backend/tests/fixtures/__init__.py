"""Test fixtures and factories."""

from tests.fixtures.factories import DEMO_SHOP, ReviewFactory
from tests.fixtures.memory import InMemoryReviewRepository, RecordingMediaStore
from tests.fixtures.tokens import OTHER_SHOP, make_session_token

__all__ = [
    "DEMO_SHOP",
    "OTHER_SHOP",
    "InMemoryReviewRepository",
    "RecordingMediaStore",
    "ReviewFactory",
    "make_session_token",
]
