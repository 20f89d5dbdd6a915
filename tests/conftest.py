import pytest

from fakes import ALL_PAYLOAD, CATALOG, FILTERED_PAYLOAD, FakeSession


@pytest.fixture
def fake_session():
    return FakeSession(semesters=CATALOG, all_payload=ALL_PAYLOAD, filtered_payload=FILTERED_PAYLOAD)
