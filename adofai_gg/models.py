"""
データモデル定義モジュール。

スプレッドシートの各行をデコードした結果を保持するレコード型と、
データセット種別（ワークシートの gid）を定義する。

シート上で値が存在しない数値セルは None として保持する。
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from adofai_gg.tags import Tag


class DatasetKind(Enum):
    """データセット種別。値はワークシートの gid。"""

    MAPS = 739034057
    CLEARS = 110445676
    USERS = 151952522

    @property
    def gid(self) -> int:
        return self.value


@dataclass(frozen=True)
class MapRecord:
    """
    1マップ分の情報を保持するモデル。

    - difficulty は 0〜21 の難易度、または -1 / -2 / -10 の区分コード
    - bpm / tiles はシートに値が無い場合 None
    - tags は最大5個
    - dlc はDLC列に値がある場合 True
    """

    id: int
    song: str
    artist: str
    creator: str
    difficulty: float

    download_link: Optional[str]
    workshop_link: Optional[str]
    video_link: Optional[str]
    censor_reason: Optional[str]

    ew: bool
    bpm: Optional[float]
    tiles: Optional[int]
    tags: tuple[Tag, ...]
    dlc: bool


@dataclass(frozen=True)
class ClearRecord:
    """
    1件のクリア記録を保持するモデル。

    accuracy / x_accuracy はパーセント表記（シート値 ×100）、
    speed は倍速を100倍した整数（1.25倍速 → 125）。
    """

    id: int
    time_stamp: str
    name: str
    user_code: int
    map_id: int
    video_link: str

    ra: Optional[float]
    accuracy: Optional[float]
    speed: Optional[int]
    x_accuracy: Optional[float]
    play_point: Optional[float]

    local_rank: Optional[int]
    song_rank: Optional[int]
    total_rank: Optional[int]

    record_code: Optional[int]
    is_overlapped: Optional[int]
    is_new: Optional[int]
    weighted: Optional[float]
    other: Optional[str]
    feeling: Optional[float]


@dataclass(frozen=True)
class UserRecord:
    """1ユーザー分のランキング情報を保持するモデル。id はスナップショット上の位置も兼ねる。"""

    id: int
    user_name: str
    rank: int
    total_pp: float
    best_record: str
    video_link: str


Record = Union[MapRecord, ClearRecord, UserRecord]
