"""エラー分類

生成パイプラインで発生するエラーの型階層。
全てのエラーは問題のあるノード/変数/パラメータの識別子（target）を保持する。
"""

from __future__ import annotations


class ComponentError(Exception):
    """コンポーネント仕様に起因するエラーの基底クラス

    Attributes:
        target: 問題のあるノード・変数・パラメータの識別子
        message: エラーメッセージ
    """

    kind = "ComponentError"

    def __init__(self, target: str, message: str) -> None:
        super().__init__(f"{self.kind} at '{target}': {message}")
        self.target = target
        self.message = message


class TypeMismatch(ComponentError):
    """値の型が宣言された型と一致しない"""

    kind = "TypeMismatch"


class UnresolvedReference(ComponentError):
    """未宣言のパラメータ・変数への参照"""

    kind = "UnresolvedReference"


class UnknownToken(ComponentError):
    """カタログに存在しないトークン"""

    kind = "UnknownToken"


class UnsupportedPrimitive(ComponentError):
    """バックエンドが定義していないノード種別"""

    kind = "UnsupportedPrimitive"


class MalformedTree(ComponentError):
    """重複ID・循環などの構造的な不正"""

    kind = "MalformedTree"
