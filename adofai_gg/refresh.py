"""
読み込みタイミングの制御。

LoadOption に応じて、参照のたびに読み込む・一定時間経過後の参照時にだけ読み込む・
バックグラウンドで定期的に読み込む・起動時に一度だけ読み込む・自動では読み込まない、
のいずれかを行う。時間は全てエポック秒で扱う。
"""

from __future__ import annotations

import logging
import threading
from datetime import timedelta
from enum import Enum
from typing import Optional, Union

from adofai_gg.errors import AdofaiGGError, DataNotLoadedError, InvalidArgumentError
from adofai_gg.loader import LoadManager, Snapshot
from adofai_gg.models import DatasetKind

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 600

Interval = Union[int, float, timedelta, tuple]


class LoadOption(Enum):
    """データの読み込み方針。"""

    # 参照のたびに対象データセットを読み込む。
    LOAD_EVERY_READ = "load_every_read"
    # 参照時、前回の読み込みから interval 秒以上経過していれば読み込む。
    LOAD_ACTIVE_FOR_TIME = "load_active_for_time"
    # バックグラウンドスレッドで interval 秒ごとに全データセットを読み込む。
    LOAD_FOR_TIME = "load_for_time"
    # 開始時に全データセットを一度だけ読み込む。
    LOAD_ONLY_ONCE = "load_only_once"
    # 自動では読み込まない。LoadManager を直接使って読み込む。
    MANUAL = "manual"


_TUPLE_UNITS = {
    2: (60, 1),
    3: (3600, 60, 1),
    4: (86400, 3600, 60, 1),
}


def to_seconds(value: Interval) -> float:
    """
    読み込み間隔を秒に変換する。

    Args:
        value: 秒数、timedelta、または (分, 秒) / (時, 分, 秒) / (日, 時, 分, 秒) のタプル。

    Returns:
        秒数。

    Raises:
        InvalidArgumentError: 形式が不正、または負の値になる場合。
    """
    if isinstance(value, bool):
        raise InvalidArgumentError("interval must be a number, not bool")
    if isinstance(value, timedelta):
        seconds = value.total_seconds()
    elif isinstance(value, (int, float)):
        seconds = float(value)
    elif isinstance(value, tuple):
        units = _TUPLE_UNITS.get(len(value))
        if units is None:
            raise InvalidArgumentError(f"interval tuple must have 2-4 elements, got {len(value)}")
        seconds = float(sum(part * unit for part, unit in zip(value, units)))
    else:
        raise InvalidArgumentError(f"unsupported interval: {value!r}")

    if seconds < 0:
        raise InvalidArgumentError(f"interval cannot be negative: {seconds}")
    return seconds


class RefreshPolicy:
    """
    LoadOption に従って LoadManager の読み込みを駆動する。

    LOAD_FOR_TIME のときだけワーカースレッドを1本持つ。
    停止は threading.Event で通知し、実行中のHTTP通信は完了まで待つ。
    """

    def __init__(
        self,
        loader: LoadManager,
        load_option: LoadOption = LoadOption.LOAD_EVERY_READ,
        interval: Interval = DEFAULT_INTERVAL,
    ):
        self.loader = loader
        self._load_option = load_option
        self._interval = to_seconds(interval)
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._stop: Optional[threading.Event] = None

    @property
    def load_option(self) -> LoadOption:
        return self._load_option

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def worker_alive(self) -> bool:
        thread = self._thread
        return thread is not None and thread.is_alive()

    def start(self):
        """
        現在の LoadOption を適用する。

        Raises:
            NetworkError / DecodeError: LOAD_ONLY_ONCE の初回読み込みに失敗した場合。
        """
        with self._lock:
            self._apply()

    def reconfigure(self, load_option: LoadOption, interval: Optional[Interval] = None):
        """
        実行中のワーカーを止め、新しい LoadOption と間隔を適用する。

        interval を省略した場合は現在の間隔を引き継ぐ。
        """
        seconds = self._interval if interval is None else to_seconds(interval)
        with self._lock:
            self._stop_worker()
            self._load_option = load_option
            self._interval = seconds
            self._apply()

    def close(self, wait: bool = True):
        """ワーカーを停止する。wait=True の場合はスレッドの終了を待つ。"""
        with self._lock:
            self._stop_worker(wait=wait)

    def is_stale(self, kind: DatasetKind) -> bool:
        """一度も読み込まれていないか、前回の読み込みから interval 秒以上経過していれば True。"""
        last = self.loader.last_load_time(kind)
        if last is None:
            return True
        return self.loader.clock() - last >= self._interval

    def before_read(self, kind: DatasetKind):
        """参照の直前に呼ばれ、必要であれば同期的に読み込む。"""
        option = self._load_option
        if option is LoadOption.LOAD_EVERY_READ:
            self.loader.load(kind)
        elif option is LoadOption.LOAD_ACTIVE_FOR_TIME and self.is_stale(kind):
            self.loader.load(kind)

    def read(self, kind: DatasetKind) -> Snapshot:
        """
        読み込み方針を適用したうえで現在のスナップショットを返す。

        Raises:
            DataNotLoadedError: 対象データセットがまだ読み込まれていない場合。
            NetworkError / DecodeError: 参照時の読み込みに失敗した場合。
        """
        self.before_read(kind)
        snapshot = self.loader.snapshot(kind)
        if snapshot is None:
            raise DataNotLoadedError(f"{kind.name.lower()} dataset is not loaded")
        return snapshot

    def _apply(self):
        option = self._load_option
        if option is LoadOption.LOAD_FOR_TIME:
            stop = threading.Event()
            thread = threading.Thread(
                target=self._run,
                args=(stop, self._interval),
                name="adofai-gg-load",
                daemon=True,
            )
            self._stop = stop
            self._thread = thread
            thread.start()
        elif option is LoadOption.LOAD_ONLY_ONCE:
            self.loader.load_all()

    def _stop_worker(self, wait: bool = True):
        if self._stop is not None:
            self._stop.set()
        thread = self._thread
        if wait and thread is not None and thread is not threading.current_thread():
            thread.join()
        self._thread = None
        self._stop = None

    def _run(self, stop: threading.Event, interval: float):
        logger.info("Background loading started (interval=%ss)", interval)
        while not stop.is_set():
            for kind in DatasetKind:
                if stop.is_set():
                    break
                try:
                    self.loader.load(kind)
                except AdofaiGGError:
                    # 直前のスナップショットを残したまま次の周期へ
                    continue
                except Exception:
                    logger.exception("Unexpected error while loading %s dataset", kind.name.lower())
                    continue
            if stop.wait(interval):
                break
        logger.info("Background loading stopped")
