"""Adofai.gg のマップ・クリア・ユーザーデータを参照する読み取り専用ライブラリ。"""

from adofai_gg.client import AdofaiGG
from adofai_gg.config import Settings, load_settings
from adofai_gg.errors import (
    AdofaiGGError,
    DataNotLoadedError,
    DecodeError,
    InvalidArgumentError,
    NetworkError,
    OutOfRangeError,
)
from adofai_gg.loader import LoadManager, Snapshot
from adofai_gg.models import ClearRecord, DatasetKind, MapRecord, UserRecord
from adofai_gg.query import ClearQuery, MapQuery, UserQuery
from adofai_gg.refresh import LoadOption
from adofai_gg.tags import Tag

__all__ = [
    "AdofaiGG",
    "Settings",
    "load_settings",
    "AdofaiGGError",
    "DataNotLoadedError",
    "DecodeError",
    "InvalidArgumentError",
    "NetworkError",
    "OutOfRangeError",
    "LoadManager",
    "Snapshot",
    "ClearRecord",
    "DatasetKind",
    "MapRecord",
    "UserRecord",
    "ClearQuery",
    "MapQuery",
    "UserQuery",
    "LoadOption",
    "Tag",
]
