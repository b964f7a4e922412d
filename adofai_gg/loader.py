"""
スプレッドシートの各ワークシートを取得し、スナップショットとして保持する。

1回の読み込みは「HTTP取得 → エンベロープ解析 → 行デコード → 差し替え」で構成される。
スナップショットと読み込み時刻は1つの不変オブジェクトにまとめ、参照の代入1回で
差し替えるため、読み手は常に旧版か新版のどちらか一方だけを観測する。
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from adofai_gg.envelope import parse_rows
from adofai_gg.errors import AdofaiGGError
from adofai_gg.models import DatasetKind, Record
from adofai_gg.parser import decode_clears, decode_maps, decode_users
from adofai_gg.scraper import fetch_bytes

logger = logging.getLogger(__name__)

SHEET_ID = "1MOz5cmMpYwpBB95DK1Udcti_8eOrswnxWzFurhAz0yg"
SHEET_URL = f"https://docs.google.com/spreadsheets/d/{SHEET_ID}/gviz/tq?tqx=out:json&tq"

_DECODERS: dict[DatasetKind, Callable[[Sequence], tuple]] = {
    DatasetKind.MAPS: decode_maps,
    DatasetKind.CLEARS: decode_clears,
    DatasetKind.USERS: decode_users,
}


@dataclass(frozen=True)
class Snapshot:
    """
    1データセット分の最新の読み込み結果。

    Attributes:
        records: デコード済みレコード。デコードに失敗した位置は None。
        loaded_at: 読み込み完了時刻（エポック秒）。
    """

    records: tuple[Optional[Record], ...]
    loaded_at: float

    def __len__(self) -> int:
        return len(self.records)


class LoadManager:
    """
    データセットごとのスナップショットを読み込み・保持するクラス。

    同一データセットへの読み込みはロックで直列化する。
    異なるデータセット同士の整合性は保証しない。
    """

    def __init__(
        self,
        base_url: str = SHEET_URL,
        timeout: Optional[float] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.base_url = base_url
        self.timeout = timeout
        self.clock = clock
        self._snapshots: dict[DatasetKind, Optional[Snapshot]] = {kind: None for kind in DatasetKind}
        self._locks = {kind: threading.Lock() for kind in DatasetKind}

    def build_url(self, kind: DatasetKind) -> str:
        """データセットの取得URL（`<base>&gid=<gid>`）を返す。"""
        return f"{self.base_url}&gid={kind.gid}"

    def load(self, kind: DatasetKind) -> Snapshot:
        """
        データセットを取得してスナップショットを差し替える。

        Args:
            kind: 読み込むデータセット。

        Returns:
            新しく設置したスナップショット。

        Raises:
            NetworkError: HTTP通信に失敗した場合。
            DecodeError: レスポンスを解析できない場合。
            いずれの場合も直前のスナップショットはそのまま残る。
        """
        url = self.build_url(kind)
        with self._locks[kind]:
            try:
                rows = parse_rows(fetch_bytes(url, timeout=self.timeout))
            except AdofaiGGError as exc:
                logger.warning("Failed to load %s dataset: %s", kind.name.lower(), exc)
                raise

            records = _DECODERS[kind](rows)

            previous = self._snapshots[kind]
            loaded_at = self.clock()
            if previous is not None:
                loaded_at = max(loaded_at, previous.loaded_at)

            snapshot = Snapshot(records=records, loaded_at=loaded_at)
            self._snapshots[kind] = snapshot

        skipped = sum(1 for record in records if record is None)
        logger.info(
            "Loaded %s dataset: %d rows (%d skipped)",
            kind.name.lower(),
            len(records),
            skipped,
        )
        return snapshot

    def load_maps(self) -> Snapshot:
        return self.load(DatasetKind.MAPS)

    def load_clears(self) -> Snapshot:
        return self.load(DatasetKind.CLEARS)

    def load_users(self) -> Snapshot:
        return self.load(DatasetKind.USERS)

    def load_all(self) -> dict[DatasetKind, Snapshot]:
        """3データセットを順に読み込む。途中で失敗した場合は例外を伝播する。"""
        return {kind: self.load(kind) for kind in DatasetKind}

    def snapshot(self, kind: DatasetKind) -> Optional[Snapshot]:
        """現在のスナップショットを返す。未読み込みの場合は None。"""
        return self._snapshots[kind]

    def last_load_time(self, kind: DatasetKind) -> Optional[float]:
        """最後に読み込みに成功した時刻（エポック秒）。未読み込みの場合は None。"""
        snapshot = self._snapshots[kind]
        return None if snapshot is None else snapshot.loaded_at
