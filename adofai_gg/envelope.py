"""Google Visualization (gviz) のレスポンスから行データを取り出す。"""

from __future__ import annotations

import json
from typing import Any, Union

from adofai_gg.errors import DecodeError

ENVELOPE_PREFIX = "/*O_o*/\ngoogle.visualization.Query.setResponse("
ENVELOPE_SUFFIX = ");"


def parse_envelope(body: Union[bytes, str]) -> dict[str, Any]:
    """
    gviz レスポンス本文から JS コールバックの包みを外し、JSON として解析する。

    本文は `/*O_o*/\\ngoogle.visualization.Query.setResponse(` で始まり `);` で終わる。
    先頭の包みは本文の先頭にあることを要求し、末尾の `);` は最後の出現を取り除く
    （セル値に `);` が含まれていても壊れないようにするため）。

    Args:
        body: HTTP レスポンス本文。bytes の場合は UTF-8 として扱う。

    Returns:
        解析済みの JSON オブジェクト。

    Raises:
        DecodeError: 包みが欠けている、JSON として不正、またはエラー応答だった場合。
    """
    if isinstance(body, bytes):
        try:
            text = body.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise DecodeError(f"response body is not valid UTF-8: {exc}") from exc
    else:
        text = body

    if not text.startswith(ENVELOPE_PREFIX):
        raise DecodeError("gviz envelope prefix not found")
    text = text[len(ENVELOPE_PREFIX):]

    stripped = text.rstrip()
    if not stripped.endswith(ENVELOPE_SUFFIX):
        raise DecodeError("gviz envelope suffix not found")
    text = stripped[: -len(ENVELOPE_SUFFIX)]

    try:
        payload = json.loads(text)
    except (json.JSONDecodeError, RecursionError) as exc:
        raise DecodeError(f"json parse failed for gviz response: {exc}") from exc

    if not isinstance(payload, dict):
        raise DecodeError(f"gviz response root must be an object, got {type(payload).__name__}")

    if payload.get("status") == "error":
        errors = payload.get("errors")
        first = errors[0] if isinstance(errors, list) and errors else {}
        if not isinstance(first, dict):
            first = {}
        message = first.get("detailed_message") or first.get("message") or "unknown error"
        raise DecodeError(f"gviz returned an error response: {message}")

    return payload


def extract_rows(payload: dict[str, Any]) -> list[Any]:
    """
    解析済み JSON から `table.rows` を取り出す。

    `table` または `rows` が無い場合は空リストを返す。

    Raises:
        DecodeError: `table` がオブジェクトでない、または `rows` が配列でない場合。
    """
    table = payload.get("table")
    if table is None:
        return []
    if not isinstance(table, dict):
        raise DecodeError("gviz response 'table' must be an object")

    rows = table.get("rows")
    if rows is None:
        return []
    if not isinstance(rows, list):
        raise DecodeError("gviz response 'table.rows' must be an array")
    return rows


def parse_rows(body: Union[bytes, str]) -> list[Any]:
    """レスポンス本文から行データの配列を返す。"""
    return extract_rows(parse_envelope(body))
