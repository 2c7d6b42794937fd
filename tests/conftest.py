from __future__ import annotations

import pytest
from doubles import TEST_HOST, RecordingTransport

from dispatchkit import APIClient


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def client(transport: RecordingTransport) -> APIClient:
    return APIClient(TEST_HOST, transport=transport)
