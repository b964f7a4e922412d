"""
スナップショットを絞り込むクエリ。

各クエリは未設定（None）を含む条件の集まりで、設定された条件を全て満たす
レコードだけを元の順序のまま返す。セッターは self を返すため連結して書ける。

    query = ClearQuery().set_map_id(123).set_speed(100, 200)
    clears = query.evaluate(snapshot)

条件の意味:
- 文字列条件は部分一致（大文字小文字を区別）
- user_code / map_id は完全一致
- 数値の範囲条件は下限・上限とも境界を含み、それぞれ独立に設定できる
- 範囲条件が設定されている項目の値が None のレコードは一致しない
- デコードに失敗した位置（None）は常に一致しない
"""

from __future__ import annotations

import math
from typing import Generic, Iterable, Optional, TypeVar, Union

from adofai_gg.errors import InvalidArgumentError
from adofai_gg.models import ClearRecord, MapRecord, UserRecord
from adofai_gg.tags import MAX_TAGS, Tag, decode_tag

R = TypeVar("R")
Number = Union[int, float]

DIFFICULTY_CODES = (-1, -2, -10)
MAX_DIFFICULTY = 21


def _check_string(value: Optional[str], name: str) -> str:
    if value is None:
        raise InvalidArgumentError(f"{name} cannot be None")
    if not isinstance(value, str):
        raise InvalidArgumentError(f"{name} must be a string, got {type(value).__name__}")
    return value


def _check_number(value: Optional[Number], name: str) -> Number:
    if value is None:
        raise InvalidArgumentError(f"{name} cannot be None")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidArgumentError(f"{name} must be a number, got {type(value).__name__}")
    if not math.isfinite(value):
        raise InvalidArgumentError(f"{name} must be finite, got {value}")
    return value


def _check_non_negative(value: Optional[Number], name: str) -> Number:
    value = _check_number(value, name)
    if value < 0:
        raise InvalidArgumentError(f"{name} cannot be less than 0")
    return value


def _check_order(lower: Number, upper: Number, name: str):
    if lower > upper:
        raise InvalidArgumentError(f"max {name} cannot be less than the min {name}")


def _in_range(value: Optional[Number], lower: Optional[Number], upper: Optional[Number]) -> bool:
    if lower is None and upper is None:
        return True
    if value is None:
        return False
    if lower is not None and value < lower:
        return False
    if upper is not None and value > upper:
        return False
    return True


def _contains(value: Optional[str], needle: Optional[str]) -> bool:
    if needle is None:
        return True
    return value is not None and needle in value


class _Query(Generic[R]):
    def matches(self, record: Optional[R]) -> bool:
        """record が全ての条件を満たすか判定する。None は常に False。"""
        return record is not None and self._matches(record)

    def evaluate(self, records: Iterable[Optional[R]]) -> list[R]:
        """条件を満たすレコードを元の順序のまま返す。"""
        return [record for record in records if record is not None and self._matches(record)]

    def _matches(self, record: R) -> bool:
        raise NotImplementedError


class MapQuery(_Query[MapRecord]):
    """マップの絞り込み条件。"""

    def __init__(self):
        self.song: Optional[str] = None
        self.artist: Optional[str] = None
        self.creator: Optional[str] = None
        self.min_difficulty: Optional[float] = None
        self.max_difficulty: Optional[float] = None
        self.ew: Optional[bool] = None
        self.min_bpm: Optional[float] = None
        self.max_bpm: Optional[float] = None
        self.min_tiles: Optional[int] = None
        self.max_tiles: Optional[int] = None
        self.tags: Optional[frozenset[Tag]] = None
        self.require_all_tags = False
        self.dlc: Optional[bool] = None

    def set_song(self, song: str) -> "MapQuery":
        self.song = _check_string(song, "song")
        return self

    def set_artist(self, artist: str) -> "MapQuery":
        self.artist = _check_string(artist, "artist")
        return self

    def set_creator(self, creator: str) -> "MapQuery":
        self.creator = _check_string(creator, "creator")
        return self

    @staticmethod
    def _check_difficulty(difficulty: Optional[float]) -> float:
        difficulty = _check_number(difficulty, "difficulty")
        if (difficulty < 0 and difficulty not in DIFFICULTY_CODES) or difficulty > MAX_DIFFICULTY:
            raise InvalidArgumentError(f"difficulty cannot be {difficulty}")
        return difficulty

    def set_difficulty(self, difficulty: float, max_difficulty: Optional[float] = None) -> "MapQuery":
        """
        難易度の範囲を設定する。max_difficulty を省略した場合は difficulty との完全一致。

        0〜21 のほか、区分コード -1 / -2 / -10 を指定できる。

        Raises:
            InvalidArgumentError: 存在しない難易度、または下限が上限を超える場合。
        """
        lower = self._check_difficulty(difficulty)
        upper = lower if max_difficulty is None else self._check_difficulty(max_difficulty)
        _check_order(lower, upper, "difficulty")
        self.min_difficulty = lower
        self.max_difficulty = upper
        return self

    def set_min_difficulty(self, difficulty: float) -> "MapQuery":
        self.min_difficulty = self._check_difficulty(difficulty)
        return self

    def set_max_difficulty(self, difficulty: float) -> "MapQuery":
        self.max_difficulty = self._check_difficulty(difficulty)
        return self

    def set_ew(self, ew: bool) -> "MapQuery":
        self.ew = bool(ew)
        return self

    def set_bpm(self, bpm: float, max_bpm: Optional[float] = None) -> "MapQuery":
        lower = _check_non_negative(bpm, "bpm")
        upper = lower if max_bpm is None else _check_non_negative(max_bpm, "bpm")
        _check_order(lower, upper, "bpm")
        self.min_bpm = lower
        self.max_bpm = upper
        return self

    def set_min_bpm(self, bpm: float) -> "MapQuery":
        self.min_bpm = _check_non_negative(bpm, "bpm")
        return self

    def set_max_bpm(self, bpm: float) -> "MapQuery":
        self.max_bpm = _check_non_negative(bpm, "bpm")
        return self

    def set_tiles(self, tiles: int, max_tiles: Optional[int] = None) -> "MapQuery":
        lower = _check_non_negative(tiles, "tiles")
        upper = lower if max_tiles is None else _check_non_negative(max_tiles, "tiles")
        _check_order(lower, upper, "tiles")
        self.min_tiles = lower
        self.max_tiles = upper
        return self

    def set_min_tiles(self, tiles: int) -> "MapQuery":
        self.min_tiles = _check_non_negative(tiles, "tiles")
        return self

    def set_max_tiles(self, tiles: int) -> "MapQuery":
        self.max_tiles = _check_non_negative(tiles, "tiles")
        return self

    def set_tags(self, require_all: bool, *tags: Union[Tag, str]) -> "MapQuery":
        """
        タグ条件を設定する。

        require_all=False の場合、マップのタグのいずれかが指定集合に含まれれば一致する。
        require_all=True の場合、マップのタグが全て指定集合に含まれれば一致する。
        どちらの場合もタグの無いマップは一致しない。

        Args:
            require_all: 全一致モードにするかどうか。
            tags: Tag またはタグラベル（例: `#스윙`）。

        Raises:
            InvalidArgumentError: None や未知のラベルを含む場合、
                または require_all=True で MAX_TAGS 個を超えて指定した場合。
        """
        if require_all and len(tags) > MAX_TAGS:
            raise InvalidArgumentError(f"tag cannot be more than {MAX_TAGS}")

        resolved: set[Tag] = set()
        for tag in tags:
            if isinstance(tag, Tag):
                resolved.add(tag)
            elif isinstance(tag, str):
                resolved.add(decode_tag(tag))
            else:
                raise InvalidArgumentError(f"invalid tag: {tag!r}")

        self.require_all_tags = bool(require_all)
        self.tags = frozenset(resolved)
        return self

    def set_dlc(self, dlc: bool) -> "MapQuery":
        self.dlc = bool(dlc)
        return self

    def _matches_tags(self, record: MapRecord) -> bool:
        if self.tags is None:
            return True
        if not record.tags:
            return False
        if self.require_all_tags:
            return all(tag in self.tags for tag in record.tags)
        return any(tag in self.tags for tag in record.tags)

    def _matches(self, record: MapRecord) -> bool:
        return (
            _contains(record.song, self.song)
            and _contains(record.artist, self.artist)
            and _contains(record.creator, self.creator)
            and _in_range(record.difficulty, self.min_difficulty, self.max_difficulty)
            and (self.ew is None or record.ew == self.ew)
            and _in_range(record.bpm, self.min_bpm, self.max_bpm)
            and _in_range(record.tiles, self.min_tiles, self.max_tiles)
            and self._matches_tags(record)
            and (self.dlc is None or record.dlc == self.dlc)
        )


class ClearQuery(_Query[ClearRecord]):
    """クリア記録の絞り込み条件。speed は倍速の100倍（1.25倍速 → 125）で指定する。"""

    def __init__(self):
        self.name: Optional[str] = None
        self.user_code: Optional[int] = None
        self.map_id: Optional[int] = None
        self.min_speed: Optional[int] = None
        self.max_speed: Optional[int] = None
        self.min_x_accuracy: Optional[float] = None
        self.max_x_accuracy: Optional[float] = None
        self.min_play_point: Optional[float] = None
        self.max_play_point: Optional[float] = None
        self.min_local_rank: Optional[int] = None
        self.max_local_rank: Optional[int] = None
        self.min_song_rank: Optional[int] = None
        self.max_song_rank: Optional[int] = None
        self.min_total_rank: Optional[int] = None
        self.max_total_rank: Optional[int] = None

    def set_name(self, name: str) -> "ClearQuery":
        self.name = _check_string(name, "name")
        return self

    def set_user_code(self, user_code: int) -> "ClearQuery":
        self.user_code = _check_non_negative(user_code, "user code")
        return self

    def set_map_id(self, map_id: int) -> "ClearQuery":
        self.map_id = _check_non_negative(map_id, "map id")
        return self

    def set_speed(self, speed: int, max_speed: Optional[int] = None) -> "ClearQuery":
        lower = _check_non_negative(speed, "speed")
        upper = lower if max_speed is None else _check_non_negative(max_speed, "speed")
        _check_order(lower, upper, "speed")
        self.min_speed = lower
        self.max_speed = upper
        return self

    def set_min_speed(self, speed: int) -> "ClearQuery":
        self.min_speed = _check_non_negative(speed, "speed")
        return self

    def set_max_speed(self, speed: int) -> "ClearQuery":
        self.max_speed = _check_non_negative(speed, "speed")
        return self

    @staticmethod
    def _check_x_accuracy(x_accuracy: Optional[float]) -> float:
        value = _check_non_negative(x_accuracy, "x accuracy")
        if value > 100:
            raise InvalidArgumentError("x accuracy cannot be greater than 100")
        return value

    def set_x_accuracy(self, x_accuracy: float, max_x_accuracy: Optional[float] = None) -> "ClearQuery":
        """X精度（パーセント, 0〜100）の範囲を設定する。"""
        lower = self._check_x_accuracy(x_accuracy)
        upper = lower if max_x_accuracy is None else self._check_x_accuracy(max_x_accuracy)
        _check_order(lower, upper, "x accuracy")
        self.min_x_accuracy = lower
        self.max_x_accuracy = upper
        return self

    def set_min_x_accuracy(self, x_accuracy: float) -> "ClearQuery":
        self.min_x_accuracy = self._check_x_accuracy(x_accuracy)
        return self

    def set_max_x_accuracy(self, x_accuracy: float) -> "ClearQuery":
        self.max_x_accuracy = self._check_x_accuracy(x_accuracy)
        return self

    def set_play_point(self, play_point: float, max_play_point: Optional[float] = None) -> "ClearQuery":
        lower = _check_non_negative(play_point, "play point")
        upper = lower if max_play_point is None else _check_non_negative(max_play_point, "play point")
        _check_order(lower, upper, "play point")
        self.min_play_point = lower
        self.max_play_point = upper
        return self

    def set_min_play_point(self, play_point: float) -> "ClearQuery":
        self.min_play_point = _check_non_negative(play_point, "play point")
        return self

    def set_max_play_point(self, play_point: float) -> "ClearQuery":
        self.max_play_point = _check_non_negative(play_point, "play point")
        return self

    def set_local_rank(self, local_rank: int, max_local_rank: Optional[int] = None) -> "ClearQuery":
        lower = _check_non_negative(local_rank, "local rank")
        upper = lower if max_local_rank is None else _check_non_negative(max_local_rank, "local rank")
        _check_order(lower, upper, "local rank")
        self.min_local_rank = lower
        self.max_local_rank = upper
        return self

    def set_min_local_rank(self, local_rank: int) -> "ClearQuery":
        self.min_local_rank = _check_non_negative(local_rank, "local rank")
        return self

    def set_max_local_rank(self, local_rank: int) -> "ClearQuery":
        self.max_local_rank = _check_non_negative(local_rank, "local rank")
        return self

    def set_song_rank(self, song_rank: int, max_song_rank: Optional[int] = None) -> "ClearQuery":
        lower = _check_non_negative(song_rank, "song rank")
        upper = lower if max_song_rank is None else _check_non_negative(max_song_rank, "song rank")
        _check_order(lower, upper, "song rank")
        self.min_song_rank = lower
        self.max_song_rank = upper
        return self

    def set_min_song_rank(self, song_rank: int) -> "ClearQuery":
        self.min_song_rank = _check_non_negative(song_rank, "song rank")
        return self

    def set_max_song_rank(self, song_rank: int) -> "ClearQuery":
        self.max_song_rank = _check_non_negative(song_rank, "song rank")
        return self

    def set_total_rank(self, total_rank: int, max_total_rank: Optional[int] = None) -> "ClearQuery":
        lower = _check_non_negative(total_rank, "total rank")
        upper = lower if max_total_rank is None else _check_non_negative(max_total_rank, "total rank")
        _check_order(lower, upper, "total rank")
        self.min_total_rank = lower
        self.max_total_rank = upper
        return self

    def set_min_total_rank(self, total_rank: int) -> "ClearQuery":
        self.min_total_rank = _check_non_negative(total_rank, "total rank")
        return self

    def set_max_total_rank(self, total_rank: int) -> "ClearQuery":
        self.max_total_rank = _check_non_negative(total_rank, "total rank")
        return self

    def _matches(self, record: ClearRecord) -> bool:
        return (
            _contains(record.name, self.name)
            and (self.user_code is None or record.user_code == self.user_code)
            and (self.map_id is None or record.map_id == self.map_id)
            and _in_range(record.speed, self.min_speed, self.max_speed)
            and _in_range(record.x_accuracy, self.min_x_accuracy, self.max_x_accuracy)
            and _in_range(record.play_point, self.min_play_point, self.max_play_point)
            and _in_range(record.local_rank, self.min_local_rank, self.max_local_rank)
            and _in_range(record.song_rank, self.min_song_rank, self.max_song_rank)
            and _in_range(record.total_rank, self.min_total_rank, self.max_total_rank)
        )


class UserQuery(_Query[UserRecord]):
    """ユーザーの絞り込み条件。"""

    def __init__(self):
        self.user_name: Optional[str] = None
        self.min_rank: Optional[int] = None
        self.max_rank: Optional[int] = None
        self.min_total_pp: Optional[float] = None
        self.max_total_pp: Optional[float] = None

    def set_user_name(self, user_name: str) -> "UserQuery":
        self.user_name = _check_string(user_name, "user name")
        return self

    def set_rank(self, rank: int, max_rank: Optional[int] = None) -> "UserQuery":
        lower = _check_non_negative(rank, "rank")
        upper = lower if max_rank is None else _check_non_negative(max_rank, "rank")
        _check_order(lower, upper, "rank")
        self.min_rank = lower
        self.max_rank = upper
        return self

    def set_min_rank(self, rank: int) -> "UserQuery":
        self.min_rank = _check_non_negative(rank, "rank")
        return self

    def set_max_rank(self, rank: int) -> "UserQuery":
        self.max_rank = _check_non_negative(rank, "rank")
        return self

    def set_total_pp(self, total_pp: float, max_total_pp: Optional[float] = None) -> "UserQuery":
        lower = _check_non_negative(total_pp, "total pp")
        upper = lower if max_total_pp is None else _check_non_negative(max_total_pp, "total pp")
        _check_order(lower, upper, "total pp")
        self.min_total_pp = lower
        self.max_total_pp = upper
        return self

    def set_min_total_pp(self, total_pp: float) -> "UserQuery":
        self.min_total_pp = _check_non_negative(total_pp, "total pp")
        return self

    def set_max_total_pp(self, total_pp: float) -> "UserQuery":
        self.max_total_pp = _check_non_negative(total_pp, "total pp")
        return self

    def _matches(self, record: UserRecord) -> bool:
        return (
            _contains(record.user_name, self.user_name)
            and _in_range(record.rank, self.min_rank, self.max_rank)
            and _in_range(record.total_pp, self.min_total_pp, self.max_total_pp)
        )
