"""スタイル解決

ノードの静的スタイルと動的バインディングを1つの順序付きプロパティ集合に統合する。
動的バインディングは同じキーの静的宣言より常に優先される
（静的値は解決前の既定値であり、後から適用されるフォールバックではない）。
"""

from __future__ import annotations

from typing import Any

from comptool.core.base.errors import TypeMismatch
from comptool.core.base.ir import ComponentIR, Environment, Expr, LiteralValue, RenderNode, TokenRef
from comptool.core.base.style_keys import TEXT_PROPERTY_KEYS, TEXT_STYLE_KEY, order_style_keys
from comptool.core.engine.logic import LogicEvaluator
from comptool.core.engine.profile import BackendProfile
from comptool.core.engine.render_tree import RenderTree
from comptool.core.engine.tokens import TokenCatalog, lookup, resolve_token


def static_subset(node: RenderNode) -> dict[str, Expr]:
    """動的バインディングのない静的スタイル（全環境で共通の部分）を正規順序で返す"""
    keys = order_style_keys(key for key in node.style if key not in node.bindings)
    return {key: node.style[key] for key in keys}


def dynamic_keys(node: RenderNode) -> list[str]:
    """動的バインディングのキーを正規順序で返す"""
    return order_style_keys(node.bindings)


def restated_keys(node: RenderNode) -> list[str]:
    """動的テキストスタイルの展開後に再適用する静的キー

    テキストスタイルが動的な場合、その展開は静的な局所上書き（fontWeight など）を
    打ち消してしまうため、テキストプロパティの静的キーを展開の直後に再び適用する。
    """
    if TEXT_STYLE_KEY not in node.bindings:
        return []
    return [key for key in static_subset(node) if key in TEXT_PROPERTY_KEYS]


def resolve_style(
    component: ComponentIR,
    node: RenderNode,
    environment: Environment,
    catalog: TokenCatalog,
    backend: BackendProfile | None = None,
    state: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """ノードのスタイルを解決

    アルゴリズム:
    1. 静的テキストスタイルのプロパティを展開
    2. その他の静的キーで上書き（局所的な上書きはテキストスタイルの他のプロパティと共存する）
    3. 動的テキストスタイルを展開し、テキストプロパティの静的キーを再適用
    4. その他の動的キーを正規順序で上書き

    Args:
        component: IR
        node: 対象ノード
        environment: パラメータ・状態の具体値
        catalog: トークンカタログ
        backend: バックエンドプロファイル（指定時はアクセス式の解決可能性も検証）
        state: 評価済みの変数値（省略時はロジックを評価する）

    Returns:
        キー -> 具体値 の順序付き辞書

    Raises:
        UnknownToken: カタログに存在しないトークン
    """
    if state is None:
        state = LogicEvaluator(component).run(environment)

    resolved: dict[str, Any] = {}
    static = static_subset(node)
    if TEXT_STYLE_KEY in static:
        resolved.update(_text_style_props(_resolve_expr(static[TEXT_STYLE_KEY]), catalog, backend, node))
    for key, value in static.items():
        if key != TEXT_STYLE_KEY:
            resolved[key] = _resolve_value(_resolve_expr(value), catalog, backend)

    keys = dynamic_keys(node)
    if TEXT_STYLE_KEY in keys:
        value = state[node.bindings[TEXT_STYLE_KEY]]
        resolved.update(_text_style_props(value, catalog, backend, node))
        for key in restated_keys(node):
            resolved[key] = _resolve_value(_resolve_expr(static[key]), catalog, backend)
    for key in keys:
        if key != TEXT_STYLE_KEY:
            resolved[key] = _resolve_value(state[node.bindings[key]], catalog, backend)
    return resolved


def resolve_content(
    component: ComponentIR,
    node: RenderNode,
    environment: Environment,
    state: dict[str, Any] | None = None,
) -> str | None:
    """ノードのテキスト内容を解決"""
    if node.text_binding is None:
        return node.text
    if state is None:
        state = LogicEvaluator(component).run(environment)
    return state[node.text_binding]


def resolve_tree(
    component: ComponentIR,
    environment: Environment,
    catalog: TokenCatalog,
    backend: BackendProfile | None = None,
) -> dict[str, dict[str, Any]]:
    """全ノードのスタイルを前順で解決（ロジックの評価は1回だけ）"""
    state = LogicEvaluator(component).run(environment)
    return {
        node.id: resolve_style(component, node, environment, catalog, backend, state)
        for node in RenderTree(component.root)
    }


def _resolve_expr(expr: Expr) -> Any:
    # 静的スタイルはリテラルかトークンのみ（検証済み）
    return expr.value if isinstance(expr, LiteralValue) else expr


def _resolve_value(value: Any, catalog: TokenCatalog, backend: BackendProfile | None) -> Any:
    if not isinstance(value, TokenRef):
        return value
    if backend is not None:
        lookup(value.name, value.category, backend, catalog)
    return resolve_token(value.name, value.category, catalog)


def _text_style_props(
    value: Any, catalog: TokenCatalog, backend: BackendProfile | None, node: RenderNode
) -> dict[str, Any]:
    value = _resolve_value(value, catalog, backend)
    if not isinstance(value, dict):
        raise TypeMismatch(f"{node.id}.{TEXT_STYLE_KEY}", f"text style resolved to {value!r}")
    return dict(value)
