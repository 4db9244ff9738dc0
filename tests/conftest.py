"""Shared fixtures for the option data processing tests."""

import asyncio
from datetime import date, datetime, timezone

import httpx
import pandas as pd
import pytest

from option_data_processing.client import VendorClient
from option_data_processing.config import AuthConfig
from option_data_processing.models import OptionRight, Symbol


class FakeProvider:
    """In-memory HistoryProvider. `history` maps a tick type to a frame, None, or an exception."""

    def __init__(self, history=None, chain=None, delays=None, close_error=None):
        self.history = history or {}
        self.chain = chain or []
        self.delays = delays or {}
        self.close_error = close_error
        self.calls = []
        self.completed = []
        self.close_calls = 0

    async def list_option_chain(self, symbol, start, end):
        self.calls.append(("chain", symbol, start, end))
        return list(self.chain)

    async def get_history(self, symbol, resolution, start, end, tick_type):
        self.calls.append(("history", symbol, resolution, start, end, tick_type))
        await asyncio.sleep(self.delays.get(tick_type, 0))
        value = self.history.get(tick_type)
        if isinstance(value, BaseException):
            raise value
        self.completed.append(tick_type)
        return value

    async def close(self):
        self.close_calls += 1
        if self.close_error:
            raise self.close_error


class RecordingWriter:
    """TimeSeriesWriter stand-in that remembers every construction and write."""

    instances = []

    def __init__(self, resolution, symbol, destination_folder, tick_type):
        self.resolution = resolution
        self.symbol = symbol
        self.destination_folder = destination_folder
        self.tick_type = tick_type
        self.batches = []
        RecordingWriter.instances.append(self)

    def write(self, data):
        self.batches.append(data)
        return []


@pytest.fixture
def recording_writer():
    RecordingWriter.instances = []
    yield RecordingWriter
    RecordingWriter.instances = []


@pytest.fixture
def auth_config():
    return AuthConfig(username="USER-123456", api_key="secret", base_url="https://vendor.test/v1")


@pytest.fixture
def spxw():
    return Symbol.create_canonical_option("SPX", "SPXW")


@pytest.fixture
def start_end():
    return datetime(2023, 12, 1, tzinfo=timezone.utc), datetime(2024, 1, 31, tzinfo=timezone.utc)


@pytest.fixture
def spxw_contract(spxw):
    return spxw.contract(date(2024, 1, 19), 4700, OptionRight.CALL)


@pytest.fixture
def trade_batch(spxw_contract):
    return pd.DataFrame({
        "time": pd.to_datetime(["2023-12-29", "2024-01-02", "2024-01-03"]),
        "symbol": [spxw_contract.value] * 3,
        "open": [80.0, 75.5, 60.1],
        "high": [85.0, 78.0, 66.0],
        "low": [79.0, 70.0, 58.0],
        "close": [82.5, 71.0, 59.9],
        "volume": [1200, 950, 1800],
    })


@pytest.fixture
def open_interest_batch(spxw_contract):
    return pd.DataFrame({
        "time": pd.to_datetime(["2024-01-02", "2024-01-03"]),
        "symbol": [spxw_contract.value] * 2,
        "open_interest": [15000, 15320],
    })


@pytest.fixture
def fake_provider_cls():
    return FakeProvider


# Vendor payloads served by the httpx.MockTransport in make_handler.
CHAIN = [
    {"expirationDate": "2024-01-19", "strikePrice": 4750.0, "callPutFlag": "C"},
    {"expirationDate": "2024-01-19", "strikePrice": 4700.0, "callPutFlag": "P"},
    {"expirationDate": "2024-01-19", "strikePrice": 4700.0, "callPutFlag": "C"},
    {"expirationDate": "not-a-date", "strikePrice": 4700.0, "callPutFlag": "C"},
    {"strikePrice": 4800.0},
]

PRICES = {
    "SPXW  240119C04700000": [
        {"date": "2024-01-03", "open": 60.1, "high": 66.0, "low": 58.0, "price": 59.9, "volume": 1800},
        {"date": "2024-01-02", "open": 75.5, "high": 78.0, "low": 70.0, "price": 71.0, "volume": 950},
    ],
    "SPXW  240119P04700000": [
        {"date": "2024-01-02", "open": 12.0, "high": 13.5, "low": 11.0, "price": 13.0, "volume": 400},
    ],
}

OPEN_INTEREST = {
    "SPXW  240119C04700000": [{"date": "2024-01-02", "openInterest": 15000}],
}


def make_handler(chain=CHAIN, prices=PRICES, open_interest=OPEN_INTEREST, seen=None):
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        ids = request.url.params.get("ids")
        path = request.url.path
        if path.endswith("/options/references/chains"):
            return httpx.Response(200, json={"data": chain})
        if path.endswith("/options/prices"):
            rows = prices.get(ids)
        elif path.endswith("/options/open-interest"):
            rows = open_interest.get(ids)
        else:
            rows = None
        if rows is None:
            return httpx.Response(404, json={"errors": [{"title": "Not Found"}]})
        return httpx.Response(200, json={"data": rows})
    return handler


@pytest.fixture(name="make_handler")
def make_handler_fixture():
    """Factory for a MockTransport handler serving CHAIN, PRICES and OPEN_INTEREST."""
    return make_handler


@pytest.fixture
def make_vendor_client(auth_config):
    """Factory for a VendorClient talking to a MockTransport, by default over make_handler()."""

    def _make(handler=None):
        return VendorClient(auth_config, transport=httpx.MockTransport(handler or make_handler()))

    return _make
