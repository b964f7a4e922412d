"""
HTTP取得処理。

指定されたURLからレスポンス本文を取得する責務を持つ。
エンベロープの解析や行のデコードは envelope.py / parser.py 側で行い、
本モジュールは通信のみを担当する。

例外方針:
- requests 由来の例外は NetworkError に変換して上位へ伝播する。
"""

from __future__ import annotations

from typing import Optional

import requests

from adofai_gg.errors import NetworkError


def fetch_bytes(url: str, timeout: Optional[float] = None) -> bytes:
    """
    指定URLへHTTP GETを行い、レスポンス本文をバイト列で返す。

    Args:
        url: 取得対象URL。
        timeout: requests.get に渡すタイムアウト秒。None の場合は requests の既定値。

    Returns:
        レスポンス本文。

    Raises:
        NetworkError: HTTPエラーや通信失敗が発生した場合。
    """
    try:
        r = requests.get(url, timeout=timeout)
        r.raise_for_status()
        return r.content
    except requests.RequestException as e:
        raise NetworkError(f"HTTP fetch failed: {url} ({e})") from e
