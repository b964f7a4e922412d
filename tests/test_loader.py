"""LoadManager による取得とスナップショット差し替えのテスト。"""

from __future__ import annotations

import threading
import time

import pytest
import requests

from adofai_gg.errors import DecodeError, NetworkError
from adofai_gg.loader import SHEET_URL, LoadManager, Snapshot
from adofai_gg.models import DatasetKind


@pytest.mark.light
def test_build_url_appends_gid():
    manager = LoadManager()
    assert manager.build_url(DatasetKind.MAPS) == SHEET_URL + "&gid=739034057"
    assert manager.build_url(DatasetKind.CLEARS).endswith("gid=110445676")
    assert manager.build_url(DatasetKind.USERS).endswith("gid=151952522")


@pytest.mark.light
def test_load_installs_snapshot_with_load_time(sheet, clock, map_row):
    """読み込みでスナップショットと読み込み時刻が設置されることを確認する。"""
    sheet.set_rows(DatasetKind.MAPS, [map_row({0: 1.0}), map_row({0: 2.0, 1: None})])
    manager = LoadManager(clock=clock, timeout=12)

    assert manager.snapshot(DatasetKind.MAPS) is None
    assert manager.last_load_time(DatasetKind.MAPS) is None

    snapshot = manager.load_maps()

    assert manager.snapshot(DatasetKind.MAPS) is snapshot
    assert len(snapshot) == 2
    assert snapshot.records[0].id == 1
    assert snapshot.records[1] is None
    assert manager.last_load_time(DatasetKind.MAPS) == clock.now
    assert sheet.calls == [(SHEET_URL + "&gid=739034057", 12)]


@pytest.mark.light
def test_load_all_loads_each_dataset(sheet, map_row, clear_row, user_row):
    sheet.set_rows(DatasetKind.MAPS, [map_row()])
    sheet.set_rows(DatasetKind.CLEARS, [clear_row(), clear_row({0: 2.0})])
    sheet.set_rows(DatasetKind.USERS, [user_row()])
    manager = LoadManager()

    snapshots = manager.load_all()

    assert {kind: len(s) for kind, s in snapshots.items()} == {
        DatasetKind.MAPS: 1,
        DatasetKind.CLEARS: 2,
        DatasetKind.USERS: 1,
    }
    assert manager.snapshot(DatasetKind.CLEARS).records[1].id == 2


@pytest.mark.light
def test_load_failure_keeps_previous_snapshot(sheet, clock, map_row, caplog):
    """通信失敗時は NetworkError を送出し、直前のスナップショットが残ることを確認する。"""
    sheet.set_rows(DatasetKind.MAPS, [map_row()])
    manager = LoadManager(clock=clock)
    first = manager.load_maps()

    clock.now += 100
    sheet.set_error(DatasetKind.MAPS, requests.ConnectionError("network down"))
    caplog.set_level("WARNING")

    with pytest.raises(NetworkError):
        manager.load_maps()

    assert manager.snapshot(DatasetKind.MAPS) is first
    assert manager.last_load_time(DatasetKind.MAPS) == first.loaded_at
    assert "Failed to load maps dataset" in caplog.text


@pytest.mark.light
def test_load_raises_network_error_for_http_status(sheet):
    sheet.set_body(DatasetKind.USERS, b"server error", status_code=500)
    with pytest.raises(NetworkError):
        LoadManager().load_users()


@pytest.mark.light
def test_load_raises_decode_error_for_malformed_envelope(sheet):
    sheet.set_body(DatasetKind.CLEARS, b"<html>not gviz</html>")
    manager = LoadManager()
    with pytest.raises(DecodeError):
        manager.load_clears()
    assert manager.snapshot(DatasetKind.CLEARS) is None


@pytest.mark.light
def test_last_load_time_is_monotonic(sheet, clock, map_row):
    """時計が巻き戻っても読み込み時刻が減少しないことを確認する。"""
    sheet.set_rows(DatasetKind.MAPS, [map_row()])
    manager = LoadManager(clock=clock)

    first = manager.load_maps().loaded_at
    clock.now -= 50
    second = manager.load_maps().loaded_at
    clock.now += 500
    third = manager.load_maps().loaded_at

    assert first <= second <= third
    assert third == clock.now


@pytest.mark.light
def test_empty_envelope_yields_empty_snapshot(sheet):
    sheet.set_body(
        DatasetKind.MAPS,
        b'/*O_o*/\ngoogle.visualization.Query.setResponse({"table":{"rows":[]}});',
    )
    snapshot = LoadManager().load_maps()
    assert snapshot.records == ()


@pytest.mark.light
def test_concurrent_loads_of_same_dataset_are_serialized(sheet, monkeypatch, map_row):
    """同一データセットの読み込みが並行しても HTTP 取得が重ならず、参照側は完全なスナップショットだけを見ることを確認する。"""
    sheet.set_rows(DatasetKind.MAPS, [map_row({0: 1.0}), map_row({0: 2.0}), map_row({0: 3.0})])
    entered = threading.Event()
    release = threading.Event()
    state_lock = threading.Lock()
    state = {"in_flight": 0, "max_in_flight": 0}

    def blocking_get(url, timeout=None, **kwargs):
        with state_lock:
            state["in_flight"] += 1
            state["max_in_flight"] = max(state["max_in_flight"], state["in_flight"])
        entered.set()
        release.wait(5)
        try:
            return sheet.get(url, timeout=timeout, **kwargs)
        finally:
            with state_lock:
                state["in_flight"] -= 1

    monkeypatch.setattr("adofai_gg.scraper.requests.get", blocking_get)
    manager = LoadManager()

    observed = []
    stop_reading = threading.Event()

    def reader():
        while not stop_reading.is_set():
            observed.append(manager.snapshot(DatasetKind.MAPS))
            time.sleep(0.001)

    loaders = [threading.Thread(target=manager.load_maps) for _ in range(2)]
    reader_thread = threading.Thread(target=reader)
    reader_thread.start()

    loaders[0].start()
    assert entered.wait(5)
    loaders[1].start()
    time.sleep(0.1)

    assert state["in_flight"] == 1
    assert manager.snapshot(DatasetKind.MAPS) is None

    release.set()
    for thread in loaders:
        thread.join(5)
    stop_reading.set()
    reader_thread.join(5)

    assert state["max_in_flight"] == 1
    assert sheet.count(DatasetKind.MAPS) == 2
    for snapshot in observed:
        assert snapshot is None or (isinstance(snapshot, Snapshot) and len(snapshot) == 3)
    assert [record.id for record in manager.snapshot(DatasetKind.MAPS).records] == [1, 2, 3]
