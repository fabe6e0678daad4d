import socket
from datetime import datetime
from typing import List, Optional
from zoneinfo import ZoneInfo

import pytest

from remote_csv_display_v1.security import FetchResponse

JAKARTA = ZoneInfo("Asia/Jakarta")

PRICES_CSV = (
    "Date,Commodity,Code,Price,Unit\n"
    "2024-01-01,Rice,A,10000,kg\n"
    "2024-01-02,Rice,A,10500,kg\n"
    "2024-01-01,Sugar,B,15000,kg\n"
)


class FakeFetcher:
    def __init__(self, response: Optional[FetchResponse] = None, error: Optional[Exception] = None) -> None:
        self.response = response or FetchResponse(status_code=200, text=PRICES_CSV)
        self.error = error
        self.calls: List[str] = []

    async def __call__(self, url: str, timeout_seconds: float) -> FetchResponse:
        self.calls.append(url)
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def public_dns(monkeypatch):
    def fake_getaddrinfo(host, port, *args, **kwargs):  # type: ignore[no-untyped-def]
        return [(socket.AF_INET, socket.SOCK_STREAM, 6, "", ("93.184.216.34", 0))]

    monkeypatch.setattr("remote_csv_display_v1.security.socket.getaddrinfo", fake_getaddrinfo)


@pytest.fixture
def fetcher() -> FakeFetcher:
    return FakeFetcher()


def jakarta(year: int, month: int, day: int, hour: int, minute: int = 0) -> datetime:
    return datetime(year, month, day, hour, minute, tzinfo=JAKARTA)
