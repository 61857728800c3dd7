import pytest
import structlog

from betlink.repositories.sessions import InMemorySessionStore
from betlink.services.conversation import ConversationService


@pytest.fixture
def store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture
def service(store: InMemorySessionStore) -> ConversationService:
    return ConversationService(store, structlog.get_logger("tests"))
