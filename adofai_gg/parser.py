"""
行デコーダ。

gviz レスポンスの各行（`{"c": [cell, ...]}`）を、列番号の対応表に従って
MapRecord / ClearRecord / UserRecord へ変換する責務を持つ。

想定仕様:
- セルは null、または `{"v": 値}` 形式のオブジェクト
- 値が存在しないセルは None として扱う（必須列の場合は行ごと失敗）
- 1行のデコードに失敗しても他の行には影響させず、その位置を None として残す
"""

from __future__ import annotations

import logging
import math
from typing import Any, Callable, Optional, Sequence, TypeVar

from adofai_gg.errors import InvalidArgumentError
from adofai_gg.models import ClearRecord, MapRecord, UserRecord
from adofai_gg.tags import Tag, decode_tag, limit_tags

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAP_TAG_COLUMNS = range(11, 16)

# 行単位で握りつぶす例外。これ以外はバグとして上位へ伝播させる。
_ROW_ERRORS = (KeyError, IndexError, TypeError, ValueError, OverflowError)


def _cells(row: Any) -> list:
    if not isinstance(row, dict):
        raise TypeError(f"row must be an object, got {type(row).__name__}")
    cells = row.get("c")
    if not isinstance(cells, list):
        raise TypeError("row has no cell array")
    return cells


def cell_value(row: Any, index: int) -> Any:
    """
    行の index 列目のセル値を返す。

    列が存在しない、セルが null、または `v` が null の場合は None を返す。
    """
    cells = _cells(row)
    if index >= len(cells):
        return None
    cell = cells[index]
    if cell is None:
        return None
    if not isinstance(cell, dict):
        raise TypeError(f"cell {index} must be an object")
    return cell.get("v")


def _as_str(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (int, float)):
        return str(value)
    raise TypeError(f"cannot read {type(value).__name__} as string")


def _as_float(value: Any) -> float:
    if isinstance(value, bool):
        raise TypeError("cannot read boolean as number")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        return float(value.strip())
    raise TypeError(f"cannot read {type(value).__name__} as number")


def _as_int(value: Any) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    number = _as_float(value)
    if isinstance(value, str) and not number.is_integer():
        raise ValueError(f"not an integer: {value!r}")
    # 数値セルは gviz 上 float で届くため、小数部は切り捨てる
    return int(number)


def get_str(row: Any, index: int) -> Optional[str]:
    value = cell_value(row, index)
    return None if value is None else _as_str(value)


def get_float(row: Any, index: int) -> Optional[float]:
    value = cell_value(row, index)
    return None if value is None else _as_float(value)


def get_int(row: Any, index: int) -> Optional[int]:
    value = cell_value(row, index)
    return None if value is None else _as_int(value)


def _require(row: Any, index: int, reader: Callable[[Any, int], Optional[T]]) -> T:
    value = reader(row, index)
    if value is None:
        raise ValueError(f"required column {index} is empty")
    return value


def require_str(row: Any, index: int) -> str:
    return _require(row, index, get_str)


def require_float(row: Any, index: int) -> float:
    return _require(row, index, get_float)


def require_int(row: Any, index: int) -> int:
    return _require(row, index, get_int)


def _percent(value: Optional[float]) -> Optional[float]:
    return None if value is None else value * 100


def _hundredths(value: Optional[float]) -> Optional[int]:
    """シート上の倍率を100倍して切り捨てる。浮動小数の誤差（1.15 → 114.99...）は丸めてから切り捨てる。"""
    if value is None:
        return None
    scaled = round(value * 100, 6)
    if not math.isfinite(scaled):
        raise ValueError(f"speed is not finite: {value}")
    return int(scaled)


def _decode_tags(row: Any) -> tuple[Tag, ...]:
    tags: list[Tag] = []
    for index in MAP_TAG_COLUMNS:
        label = get_str(row, index)
        if label is None:
            continue
        try:
            tags.append(decode_tag(label))
        except InvalidArgumentError:
            logger.debug("unknown tag label skipped: %r (column %d)", label, index)
    return limit_tags(tags)


def decode_map_row(row: Any) -> MapRecord:
    """
    マップ行を MapRecord に変換する。

    想定列構成:
    0: ID / 1: 曲名 / 2: アーティスト / 4: 制作者 / 9: BPM / 10: タイル数
    11-15: タグ / 16: 難易度 / 17: DLC / 18: ダウンロード / 19: ワークショップ
    20: 動画 / 24: 検閲理由

    Raises:
        ValueError: 必須列（ID/曲名/アーティスト/制作者/難易度）が空、または数値に変換できない場合。
    """
    dlc_marker = get_str(row, 17)
    return MapRecord(
        id=require_int(row, 0),
        song=require_str(row, 1),
        artist=require_str(row, 2),
        creator=require_str(row, 4),
        difficulty=require_float(row, 16),
        download_link=get_str(row, 18),
        workshop_link=get_str(row, 19),
        video_link=get_str(row, 20),
        censor_reason=get_str(row, 24),
        ew=False,
        bpm=get_float(row, 9),
        tiles=get_int(row, 10),
        tags=_decode_tags(row),
        dlc=bool(dlc_marker and dlc_marker.strip()),
    )


def decode_clear_row(row: Any) -> ClearRecord:
    """
    クリア行を ClearRecord に変換する。

    12列目(精度)と14列目(X精度)は100倍してパーセントに、
    13列目(倍速)は100倍して整数に変換する。

    Raises:
        ValueError: 必須列（ID/日時/名前/ユーザーコード/マップID/動画）が空の場合。
    """
    return ClearRecord(
        id=require_int(row, 0),
        time_stamp=require_str(row, 1),
        name=require_str(row, 2),
        user_code=require_int(row, 3),
        map_id=require_int(row, 4),
        video_link=require_str(row, 24),
        ra=get_float(row, 11),
        accuracy=_percent(get_float(row, 12)),
        speed=_hundredths(get_float(row, 13)),
        x_accuracy=_percent(get_float(row, 14)),
        play_point=get_float(row, 15),
        local_rank=get_int(row, 16),
        song_rank=get_int(row, 17),
        total_rank=get_int(row, 18),
        record_code=get_int(row, 19),
        is_overlapped=get_int(row, 20),
        is_new=get_int(row, 21),
        weighted=get_float(row, 22),
        other=get_str(row, 23),
        feeling=get_float(row, 25),
    )


def decode_user_row(row: Any) -> UserRecord:
    """ユーザー行を UserRecord に変換する。全列必須。"""
    return UserRecord(
        id=require_int(row, 10),
        user_name=require_str(row, 9),
        rank=require_int(row, 8),
        total_pp=require_float(row, 11),
        best_record=require_str(row, 12),
        video_link=require_str(row, 13),
    )


def _decode_rows(
    rows: Sequence[Any],
    decode_row: Callable[[Any], T],
    dataset: str,
) -> list[Optional[T]]:
    records: list[Optional[T]] = []
    for index, row in enumerate(rows):
        try:
            records.append(decode_row(row))
        except _ROW_ERRORS as exc:
            logger.debug("%s row %d skipped: %s", dataset, index, exc)
            records.append(None)
    return records


def decode_maps(rows: Sequence[Any]) -> tuple[Optional[MapRecord], ...]:
    """マップ行の配列をデコードする。i 行目は i 番目に置く。"""
    return tuple(_decode_rows(rows, decode_map_row, "map"))


def decode_clears(rows: Sequence[Any]) -> tuple[Optional[ClearRecord], ...]:
    """クリア行の配列をデコードする。i 行目は i 番目に置く。"""
    return tuple(_decode_rows(rows, decode_clear_row, "clear"))


def decode_users(rows: Sequence[Any]) -> tuple[Optional[UserRecord], ...]:
    """
    ユーザー行の配列をデコードする。

    各レコードは行の順序ではなく `id - 1` の位置に置く。
    結果の長さは行数と同じで、id がその範囲外のレコードは捨てる。
    """
    slots: list[Optional[UserRecord]] = [None] * len(rows)
    for record in _decode_rows(rows, decode_user_row, "user"):
        if record is None:
            continue
        if not 1 <= record.id <= len(slots):
            logger.debug("user id %d is out of range (rows=%d), skipped", record.id, len(slots))
            continue
        slots[record.id - 1] = record
    return tuple(slots)
