"""
Adofai.gg データ参照の入口。

AdofaiGG は読み込み方針（RefreshPolicy）、読み込み処理（LoadManager）、
各クエリをまとめ、ID指定・クエリ指定での参照を提供する。
参照は全て読み込み方針を経由してからスナップショットを参照する。

既定の構成:
- load_option: LoadOption.LOAD_EVERY_READ
- interval: 600 秒
"""

from __future__ import annotations

import logging
from typing import Optional

from adofai_gg.config import Settings
from adofai_gg.errors import OutOfRangeError
from adofai_gg.loader import LoadManager
from adofai_gg.models import ClearRecord, DatasetKind, MapRecord, Record, UserRecord
from adofai_gg.query import ClearQuery, MapQuery, UserQuery
from adofai_gg.refresh import DEFAULT_INTERVAL, Interval, LoadOption, RefreshPolicy

logger = logging.getLogger(__name__)


class AdofaiGG:
    """
    マップ・クリア・ユーザーの3データセットへの読み取り専用インターフェース。

    例:
        with AdofaiGG(LoadOption.LOAD_ACTIVE_FOR_TIME, (5, 0)) as gg:
            maps = gg.get_maps_by_query(MapQuery().set_difficulty(18, 20))
    """

    def __init__(
        self,
        load_option: LoadOption = LoadOption.LOAD_EVERY_READ,
        interval: Interval = DEFAULT_INTERVAL,
        *,
        load_manager: Optional[LoadManager] = None,
    ):
        """
        Args:
            load_option: データの読み込み方針。
            interval: 読み込み間隔。秒数、timedelta、または (分, 秒) / (時, 分, 秒) /
                (日, 時, 分, 秒) のタプル。
            load_manager: 差し替え用の LoadManager。省略時は既定のシートを参照する。

        Raises:
            InvalidArgumentError: interval が不正な場合。
            NetworkError / DecodeError: LOAD_ONLY_ONCE の初回読み込みに失敗した場合。
        """
        self.load_manager = load_manager or LoadManager()
        self.refresh_policy = RefreshPolicy(self.load_manager, load_option, interval)
        self.refresh_policy.start()

    @classmethod
    def from_settings(cls, settings: Settings) -> "AdofaiGG":
        """Settings から AdofaiGG を構成する。"""
        manager = LoadManager(base_url=settings.sheet_url, timeout=settings.timeout)
        return cls(settings.load_option, settings.interval, load_manager=manager)

    @property
    def load_option(self) -> LoadOption:
        return self.refresh_policy.load_option

    @property
    def interval(self) -> float:
        return self.refresh_policy.interval

    def reconfigure(self, load_option: LoadOption, interval: Optional[Interval] = None):
        """読み込み方針を変更する。バックグラウンド読み込みは一度停止してから再適用する。"""
        logger.info("Reconfiguring load option: %s -> %s", self.load_option.name, load_option.name)
        self.refresh_policy.reconfigure(load_option, interval)

    def close(self):
        """バックグラウンド読み込みを停止する。"""
        self.refresh_policy.close()

    def __enter__(self) -> "AdofaiGG":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def _records(self, kind: DatasetKind) -> tuple[Optional[Record], ...]:
        return self.refresh_policy.read(kind).records

    @staticmethod
    def _by_id(records: tuple[Optional[Record], ...], record_id: int, kind: DatasetKind) -> Optional[Record]:
        if record_id < 1 or record_id > len(records):
            raise OutOfRangeError(f"{kind.name.lower()} id {record_id} is out of range (1..{len(records)})")
        return records[record_id - 1]

    def get_maps(self) -> tuple[Optional[MapRecord], ...]:
        """
        現在のマップスナップショットを返す。

        Raises:
            DataNotLoadedError: マップがまだ読み込まれていない場合。
        """
        return self._records(DatasetKind.MAPS)

    def get_clears(self) -> tuple[Optional[ClearRecord], ...]:
        """現在のクリアスナップショットを返す。"""
        return self._records(DatasetKind.CLEARS)

    def get_users(self) -> tuple[Optional[UserRecord], ...]:
        """現在のユーザースナップショットを返す。"""
        return self._records(DatasetKind.USERS)

    def get_map_by_id(self, map_id: int) -> Optional[MapRecord]:
        """
        ID（1始まり）を指定してマップを返す。デコードに失敗した位置の場合は None。

        Raises:
            OutOfRangeError: ID がスナップショットの範囲外の場合。
            DataNotLoadedError: マップがまだ読み込まれていない場合。
        """
        return self._by_id(self.get_maps(), map_id, DatasetKind.MAPS)

    def get_clear_by_id(self, clear_id: int) -> Optional[ClearRecord]:
        return self._by_id(self.get_clears(), clear_id, DatasetKind.CLEARS)

    def get_user_by_id(self, user_id: int) -> Optional[UserRecord]:
        return self._by_id(self.get_users(), user_id, DatasetKind.USERS)

    def get_maps_by_name(self, name: str) -> list[MapRecord]:
        """曲名に name を含むマップを返す。"""
        return MapQuery().set_song(name).evaluate(self.get_maps())

    def get_maps_by_query(self, query: MapQuery) -> list[MapRecord]:
        return query.evaluate(self.get_maps())

    def get_clears_by_query(self, query: ClearQuery) -> list[ClearRecord]:
        return query.evaluate(self.get_clears())

    def get_users_by_query(self, query: UserQuery) -> list[UserRecord]:
        return query.evaluate(self.get_users())
