"""Shared fixtures: an in-memory store and a fully wired service set."""

import pytest

from household_ledger.notifications import ChangeBus, ChangeTopic
from household_ledger.services import LedgerServices
from household_ledger.services.storage import InMemoryDocumentStore
from household_ledger.session import SessionContext, SessionUser


HOUSEHOLD_ID = "hh-test"


@pytest.fixture
def store():
    return InMemoryDocumentStore()


@pytest.fixture
def user():
    return SessionUser(id="user-1", name="Asha", email="asha@example.com", color="#3b82f6")


@pytest.fixture
def session(user):
    return SessionContext(household_id=HOUSEHOLD_ID, user=user)


@pytest.fixture
def bus():
    return ChangeBus()


@pytest.fixture
def services(store, session, bus):
    return LedgerServices(store=store, session=session, bus=bus)


@pytest.fixture
def published(bus):
    """Every topic published on the bus, in order."""
    topics = []
    for topic in ChangeTopic:
        bus.subscribe(topic, topics.append)
    return topics
