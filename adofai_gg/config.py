"""
設定ファイル(settings.yaml)の読み込み処理を提供するモジュール。

settings.yaml から読み込み方針・読み込み間隔・取得先URLなどを読み込み、
アプリ内で扱いやすい dataclass に変換する。

settings.yaml の例:

    load_option: load_active_for_time
    interval: 300
    timeout: 30
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

import yaml

from adofai_gg.errors import InvalidArgumentError
from adofai_gg.loader import SHEET_URL
from adofai_gg.refresh import DEFAULT_INTERVAL, LoadOption, to_seconds


@dataclass(frozen=True)
class Settings:
    """
    ライブラリ全体設定。

    Attributes:
        load_option: データの読み込み方針。
        interval: 読み込み間隔（秒）。
        sheet_url: gviz エンドポイントのURL（gid を除く）。
        timeout: HTTPタイムアウト秒。None の場合は requests の既定値。
    """

    load_option: LoadOption = LoadOption.LOAD_EVERY_READ
    interval: float = DEFAULT_INTERVAL
    sheet_url: str = SHEET_URL
    timeout: Optional[float] = None


def parse_load_option(value: Any) -> LoadOption:
    """
    文字列を LoadOption に変換する。`load_for_time` / `LOAD_FOR_TIME` のどちらも受け付ける。

    Raises:
        InvalidArgumentError: 該当する LoadOption が無い場合。
    """
    if isinstance(value, LoadOption):
        return value

    name = str(value).strip()
    for option in LoadOption:
        if name.lower() == option.value or name.upper() == option.name:
            return option
    raise InvalidArgumentError(f"unknown load_option: {value}")


def _parse_interval(value: Any) -> float:
    if isinstance(value, list):
        value = tuple(value)
    return to_seconds(value)


def load_settings(path: str) -> Settings:
    """
    settings.yaml を読み込み Settings に変換する。

    キーが存在しない場合は既定値を用いる。

    Args:
        path: settings.yaml のファイルパス。

    Returns:
        Settingsオブジェクト。

    Raises:
        FileNotFoundError: 設定ファイルが存在しない場合。
        yaml.YAMLError: YAMLのパースに失敗した場合。
        InvalidArgumentError: load_option や interval が不正な場合。
    """
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    timeout = data.get("timeout")

    return Settings(
        load_option=parse_load_option(data.get("load_option", LoadOption.LOAD_EVERY_READ)),
        interval=_parse_interval(data.get("interval", DEFAULT_INTERVAL)),
        sheet_url=str(data.get("sheet_url", SHEET_URL)).strip(),
        timeout=None if timeout is None else float(timeout),
    )
