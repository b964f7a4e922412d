from __future__ import annotations

import json
import sys
import threading
from pathlib import Path
from typing import Any, Optional, Union
from urllib.parse import parse_qs, urlparse

import pytest
import requests

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from adofai_gg.envelope import ENVELOPE_PREFIX, ENVELOPE_SUFFIX
from adofai_gg.models import DatasetKind


def build_row(values: dict[int, Any], width: int = 26) -> dict:
    """列番号→値の辞書から gviz 形式の行を作る。値が None の列は null セルにする。"""
    cells: list[Optional[dict]] = [None] * width
    for index, value in values.items():
        cells[index] = None if value is None else {"v": value}
    return {"c": cells}


def build_body(rows: list) -> bytes:
    """行配列を gviz のエンベロープで包んだレスポンス本文を作る。"""
    payload = {"version": "0.6", "status": "ok", "table": {"cols": [], "rows": rows}}
    return (ENVELOPE_PREFIX + json.dumps(payload, ensure_ascii=False) + ENVELOPE_SUFFIX).encode("utf-8")


class FakeResponse:
    def __init__(self, content: bytes, status_code: int = 200):
        self.content = content
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")


class FakeSheet:
    """requests.get の代わりに gid ごとの本文を返すスプレッドシート。"""

    def __init__(self):
        self.responses: dict[int, Union[FakeResponse, Exception]] = {}
        self.calls: list[tuple[str, Optional[float]]] = []
        self._lock = threading.Lock()

    def set_rows(self, kind: DatasetKind, rows: list):
        self.responses[kind.gid] = FakeResponse(build_body(rows))

    def set_body(self, kind: DatasetKind, body: bytes, status_code: int = 200):
        self.responses[kind.gid] = FakeResponse(body, status_code)

    def set_error(self, kind: DatasetKind, error: Exception):
        self.responses[kind.gid] = error

    def count(self, kind: DatasetKind) -> int:
        with self._lock:
            return sum(1 for url, _ in self.calls if url.endswith(f"gid={kind.gid}"))

    def get(self, url: str, timeout: Optional[float] = None, **_kwargs) -> FakeResponse:
        with self._lock:
            self.calls.append((url, timeout))
        gid = int(parse_qs(urlparse(url).query)["gid"][0])
        response = self.responses.get(gid, FakeResponse(b"not found", 404))
        if isinstance(response, Exception):
            raise response
        return response


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def sheet(monkeypatch: pytest.MonkeyPatch) -> FakeSheet:
    fake = FakeSheet()
    monkeypatch.setattr("adofai_gg.scraper.requests.get", fake.get)
    return fake


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(1_700_000_000.0)


@pytest.fixture
def make_row():
    return build_row


@pytest.fixture
def make_body():
    return build_body


MAP_COLUMNS = {
    0: 1.0,
    1: "Song",
    2: "Artist",
    4: "Creator",
    9: 200.0,
    10: 1200.0,
    11: "#스윙",
    16: 18.0,
    18: "https://example.com/download",
    20: "https://example.com/video",
}

CLEAR_COLUMNS = {
    0: 1.0,
    1: "2024-01-01 00:00:00",
    2: "Player",
    3: 10.0,
    4: 1.0,
    11: 1.5,
    12: 0.9873,
    13: 1.25,
    14: 0.95,
    15: 300.0,
    16: 1.0,
    17: 2.0,
    18: 3.0,
    19: 0.0,
    20: 0.0,
    21: 1.0,
    22: 280.5,
    24: "https://example.com/clear",
    25: 4.0,
}

USER_COLUMNS = {
    8: 1.0,
    9: "Player",
    10: 1.0,
    11: 12345.6,
    12: "Best Map",
    13: "https://example.com/user",
}


def _row_builder(defaults: dict[int, Any]):
    def build(overrides: Optional[dict[int, Any]] = None) -> dict:
        values = dict(defaults)
        values.update(overrides or {})
        return build_row(values)

    return build


@pytest.fixture
def map_row():
    return _row_builder(MAP_COLUMNS)


@pytest.fixture
def clear_row():
    return _row_builder(CLEAR_COLUMNS)


@pytest.fixture
def user_row():
    return _row_builder(USER_COLUMNS)
