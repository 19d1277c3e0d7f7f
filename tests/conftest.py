"""Shared pytest fixtures."""

import json
import pathlib

import httpx
import pytest

from aws_ip_lookup.parser import DatasetParser
from aws_ip_lookup.settings import Settings

FIXTURE_PATH = pathlib.Path(__file__).parent / "fixtures" / "ip-ranges.json"
TEST_RANGES_URL = "https://ranges.test/ip-ranges.json"


@pytest.fixture
def ranges_document():
    """The fixture ranges document as parsed JSON."""
    with open(FIXTURE_PATH, encoding="utf-8") as f:
        return json.load(f)


@pytest.fixture
def dataset(ranges_document):
    """Dataset parsed from the fixture document."""
    return DatasetParser().parse(ranges_document, "Hit")


@pytest.fixture
def test_settings():
    """Settings pointing at a fake upstream."""
    return Settings(ranges_url=TEST_RANGES_URL, max_retries=1, request_timeout=5)


class RangesEndpoint:
    """Fake upstream serving a ranges document and counting requests."""

    def __init__(self, document=None, status_code=200, headers=None, content=None):
        self.document = document
        self.status_code = status_code
        self.headers = headers or {}
        self.content = content
        self.calls = 0
        self.transport = httpx.MockTransport(self.handle)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.calls += 1
        if self.content is not None:
            return httpx.Response(self.status_code, content=self.content, headers=self.headers)
        return httpx.Response(self.status_code, json=self.document, headers=self.headers)


@pytest.fixture
def make_endpoint(ranges_document):
    """Factory for fake upstream endpoints; defaults to the fixture document."""

    def _make(document=None, **kwargs):
        return RangesEndpoint(document if document is not None else ranges_document, **kwargs)

    return _make
