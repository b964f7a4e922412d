"""
アプリケーション固有の例外定義モジュール。

データ取得、エンベロープ解析、クエリ条件の検証、スナップショット参照などの処理で
発生する例外を分類して扱うために、基底例外および派生例外を定義する。
"""


class AdofaiGGError(Exception):
    """Adofai.gg データ参照ライブラリ全体の基底例外。"""


class DataNotLoadedError(AdofaiGGError):
    """対象データセットのスナップショットがまだ一度も読み込まれていない場合の例外。"""


class OutOfRangeError(AdofaiGGError, IndexError):
    """ID指定の参照がスナップショットの範囲外だった場合の例外。"""


class InvalidArgumentError(AdofaiGGError, ValueError):
    """クエリ条件やタグ名など、呼び出し側の引数が契約を満たさない場合の例外。"""


class NetworkError(AdofaiGGError):
    """HTTP通信に起因する例外。"""


class DecodeError(AdofaiGGError, ValueError):
    """レスポンスのエンベロープやJSONを解析できない場合の例外。"""
