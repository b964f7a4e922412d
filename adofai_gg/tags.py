"""
マップタグの語彙定義。

シート上のタグ列は `#` 付きの韓国語ラベルで記録されている。
本モジュールはラベルと Tag の相互変換、および1マップあたりのタグ数上限
（5個）を超えた場合の除外規則を提供する。

除外規則（上から順に適用）:
- Memorization が含まれる場合、まず Gimmick を除外する
- FunkyBeat が含まれる場合、Tresillo → Triplet → Quintuplet → Septuplet の順に除外する
- それ以外の場合、Tresillo → Swing → Triplet → MagicShape → Gallop の順に除外する
"""

from __future__ import annotations

from enum import Enum
from typing import Iterable, Optional

from adofai_gg.errors import InvalidArgumentError

MAX_TAGS = 5


class Tag(Enum):
    """マップに付与されるタグ。値はシート上のラベル。"""

    Pseudo = "#동시치기"
    Pseudo2 = "#2+동타"
    Triplet = "#셋잇단"
    Quintuplet = "#다섯잇단"
    Septuplet = "#일곱잇단"
    PolyRhythm = "#폴리리듬"
    Swing = "#스윙"
    Tresillo = "#트레실로"
    FunkyBeat = "#개박"
    Beat64 = "#64+비트"
    Acceleration = "#변속"
    Gallop = "#질주"
    MagicShape = "#마법진"
    Memorization = "#암기"
    DLC = "#DLC"
    Long = "#4분이상"
    Slow = "#흰토끼"
    NoSpeedChange = "#배속변경X"
    NoTwirl = "#소용돌이X"
    Gimmick = "#기믹"
    NSFW = "#NSFW"
    SuddenAcceleration = "#급가속"

    @property
    def label(self) -> str:
        """シート上のラベル（例: `#스윙`）。"""
        return self.value


_TAG_BY_LABEL = {tag.value: tag for tag in Tag}

_FUNKY_BEAT_DROP_ORDER = (Tag.Tresillo, Tag.Triplet, Tag.Quintuplet, Tag.Septuplet)
_DEFAULT_DROP_ORDER = (Tag.Tresillo, Tag.Swing, Tag.Triplet, Tag.MagicShape, Tag.Gallop)


def decode_tag(label: Optional[str]) -> Tag:
    """
    ラベル文字列を Tag に変換する。

    Args:
        label: `#` 付きのタグラベル。

    Returns:
        対応する Tag。

    Raises:
        InvalidArgumentError: ラベルが空、または既知のタグに一致しない場合。
    """
    if not label:
        raise InvalidArgumentError("tag label is empty")

    tag = _TAG_BY_LABEL.get(label.strip())
    if tag is None:
        raise InvalidArgumentError(f"unknown tag label: {label}")
    return tag


def limit_tags(tags: Iterable[Tag]) -> tuple[Tag, ...]:
    """
    タグ数が MAX_TAGS を超える場合に除外規則を適用して返す。

    重複は先勝ちで1つにまとめる。規則を全て適用しても上限を超える場合は
    元の並び順で先頭 MAX_TAGS 個に切り詰める。

    Args:
        tags: 元の並び順のタグ列。

    Returns:
        元の並び順を保ったタグのタプル（最大 MAX_TAGS 個）。
    """
    result = list(dict.fromkeys(tags))
    if len(result) <= MAX_TAGS:
        return tuple(result)

    drop_order: list[Tag] = []
    if Tag.Memorization in result:
        drop_order.append(Tag.Gimmick)
    if Tag.FunkyBeat in result:
        drop_order.extend(_FUNKY_BEAT_DROP_ORDER)
    else:
        drop_order.extend(_DEFAULT_DROP_ORDER)

    for tag in drop_order:
        if len(result) <= MAX_TAGS:
            break
        if tag in result:
            result.remove(tag)

    return tuple(result[:MAX_TAGS])
