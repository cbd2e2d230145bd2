"""スタイルキー定義

既知のスタイルキーの正規順序と型、ショートハンドの展開規則。
"""

from __future__ import annotations

from typing import Any

EDGES = ("Top", "Right", "Bottom", "Left")

# 展開対象のショートハンド（均一なpadding/marginを4辺に展開）
SHORTHANDS = {
    "padding": tuple(f"padding{edge}" for edge in EDGES),
    "margin": tuple(f"margin{edge}" for edge in EDGES),
}

TEXT_STYLE_KEY = "textStyle"

# キー -> 宣言型（正規順序）
STYLE_KEY_TYPES: dict[str, str] = {
    "alignSelf": "string",
    "alignItems": "string",
    "justifyContent": "string",
    "flex": "number",
    "backgroundColor": "color",
    "flexDirection": "string",
    "paddingTop": "number",
    "paddingRight": "number",
    "paddingBottom": "number",
    "paddingLeft": "number",
    "marginTop": "number",
    "marginRight": "number",
    "marginBottom": "number",
    "marginLeft": "number",
    "width": "number",
    "height": "number",
    "borderRadius": "number",
    "borderWidth": "number",
    "borderColor": "color",
    "opacity": "number",
    TEXT_STYLE_KEY: "text-style",
    "color": "color",
    "fontFamily": "string",
    "fontSize": "number",
    "fontWeight": "string",
    "lineHeight": "number",
    "letterSpacing": "number",
    "textAlign": "string",
}

BOX_MODEL_KEYS = frozenset(
    [*SHORTHANDS["padding"], *SHORTHANDS["margin"], "width", "height"],
)

# テキストスタイルのトークンが持ちうるプロパティ
TEXT_PROPERTY_KEYS = frozenset(
    ["color", "fontFamily", "fontSize", "fontWeight", "lineHeight", "letterSpacing", "textAlign"],
)

_KEY_ORDER ={key: position for position, key in enumerate(STYLE_KEY_TYPES)}


def style_key_type(key: str) -> str | None:
    """スタイルキーの宣言型を返す（未知のキーはNone）"""
    return STYLE_KEY_TYPES.get(key)


def expand_shorthand(key: str) -> tuple[str, ...]:
    """ショートハンドを4辺のキーに展開（それ以外はそのまま）"""
    return SHORTHANDS.get(key, (key,))


def order_style_keys(keys: Any) -> list[str]:
    """既知のキーを正規順序で、未知のキーを出現順でその後に並べる"""
    keys = list(dict.fromkeys(keys))
    known = sorted((k for k in keys if k in _KEY_ORDER), key=_KEY_ORDER.__getitem__)
    unknown = [k for k in keys if k not in _KEY_ORDER]
    return known + unknown
