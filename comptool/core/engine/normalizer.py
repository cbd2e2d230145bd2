"""Normalizer: IR正規化

メタハンドラRegistryを用いてIRを正規化する。
主な機能:
1. padding/marginショートハンドの4辺への展開
2. ノードのバインディングからの変数宣言の導出
3. イベントハンドラ変数への代入の挿入
4. 拡張可能なメタハンドラRegistry

全てのハンドラは冪等（正規化済みのIRを再度正規化しても変化しない）。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Protocol

from comptool.core.base.ir import (
    INTERACTION_STATES,
    Assign,
    ComponentIR,
    Expr,
    IfBlock,
    LiteralValue,
    ParamRef,
    RenderNode,
    Statement,
    VariableSpec,
)
from comptool.core.base.style_keys import SHORTHANDS, expand_shorthand, style_key_type
from comptool.core.engine.render_tree import RenderTree

logger = logging.getLogger(__name__)


class MetaHandler(Protocol):
    """メタハンドラのプロトコル"""

    def __call__(self, component: ComponentIR) -> ComponentIR:
        """IRを正規化する

        Args:
            component: 入力IR

        Returns:
            正規化されたIR
        """
        ...


@dataclass
class MetaHandlerRegistry:
    """メタハンドラのRegistry"""

    handlers: list[MetaHandler] = field(default_factory=list)

    def register(self, handler: MetaHandler) -> None:
        """ハンドラを登録"""
        self.handlers.append(handler)

    def apply_all(self, component: ComponentIR) -> ComponentIR:
        """全てのハンドラを適用"""
        result = component
        for handler in self.handlers:
            result = handler(result)
        return result


# グローバルRegistry
_global_registry = MetaHandlerRegistry()


def register_meta_handler(handler: MetaHandler) -> None:
    """メタハンドラを登録（グローバル）

    Args:
        handler: 登録するハンドラ
    """
    _global_registry.register(handler)


def normalize_ir(component: ComponentIR) -> ComponentIR:
    """IRを正規化

    Args:
        component: 入力IR

    Returns:
        正規化されたIR
    """
    return _global_registry.apply_all(component)


# ===== Built-in Handlers =====


def shorthand_handler(component: ComponentIR) -> ComponentIR:
    """ショートハンド展開ハンドラ

    均一なpadding/marginを4辺の独立したキーに展開する。
    - 静的スタイル: 同じ値を4辺に複製
    - バインディング: 4辺それぞれの変数にバインド
    - 代入文: "Node.margin" への代入を4辺の変数への代入に展開（Top, Right, Bottom, Left の順）

    Args:
        component: 入力IR

    Returns:
        正規化されたIR
    """
    declared = {v.name for v in component.variables}
    root = _expand_node(component.root)
    logic = _expand_statements(component.logic, declared)
    return replace(component, root=root, logic=logic)


def _expand_node(node: RenderNode) -> RenderNode:
    style: dict[str, Expr] = {}
    for key, value in node.style.items():
        for edge_key in expand_shorthand(key):
            style[edge_key] = value

    bindings: dict[str, str] = {}
    for key, variable in node.bindings.items():
        if key in SHORTHANDS:
            for edge_key in SHORTHANDS[key]:
                bindings[edge_key] = f"{node.id}.{edge_key}"
        else:
            bindings[key] = variable

    children = tuple(_expand_node(child) for child in node.children)
    return replace(node, style=style, bindings=bindings, children=children)


def _expand_statements(statements: tuple[Statement, ...], declared: set[str]) -> tuple[Statement, ...]:
    result: list[Statement] = []
    for statement in statements:
        if isinstance(statement, IfBlock):
            result.append(
                replace(
                    statement,
                    body=_expand_statements(statement.body, declared),
                    orelse=_expand_statements(statement.orelse, declared),
                )
            )
            continue

        node_id, _, prop = statement.target.partition(".")
        if prop in SHORTHANDS and statement.target not in declared:
            logger.debug(f"Expanding shorthand assignment to '{statement.target}'")
            result.extend(Assign(f"{node_id}.{edge_key}", statement.value) for edge_key in SHORTHANDS[prop])
        else:
            result.append(statement)
    return tuple(result)


def variable_declaration_handler(component: ComponentIR) -> ComponentIR:
    """変数宣言導出ハンドラ

    ノードのバインディングから変数を宣言する。優先度: 導出 < 明示的な宣言
    - スタイルバインディング: 既定値は同じキーの静的スタイル値
    - テキストバインディング: 既定値は静的テキスト
    - interactiveノード: hovered/pressed 状態変数
    - イベント: handler型の変数

    Args:
        component: 入力IR

    Returns:
        正規化されたIR
    """
    explicit = {v.name: v for v in component.variables}
    derived: dict[str, VariableSpec] = {}

    for node in RenderTree(component.root):
        for key, name in node.bindings.items():
            derived[name] = VariableSpec(
                name=name,
                type=style_key_type(key) or "string",
                role="style",
                default=node.style.get(key),
            )
        if node.text_binding:
            default = LiteralValue(node.text) if node.text is not None else None
            derived[node.text_binding] = VariableSpec(
                name=node.text_binding, type="string", role="text", default=default
            )
        if node.kind == "interactive":
            for state in INTERACTION_STATES:
                name = f"{node.id}.{state}"
                derived[name] = VariableSpec(name=name, type="boolean", role="state")
        for event in node.events:
            name = node.event_variable(event)
            derived[name] = VariableSpec(name=name, type="handler", role="event")

    merged = {**derived, **explicit}
    return replace(component, variables=tuple(merged[name] for name in sorted(merged)))


def event_assignment_handler(component: ComponentIR) -> ComponentIR:
    """イベント代入挿入ハンドラ

    イベントにバインドされたhandlerパラメータを、ロジックの先頭で
    イベント変数に代入する（前順・イベント宣言順）。

    Args:
        component: 入力IR

    Returns:
        正規化されたIR
    """
    existing = [s for s in component.logic if isinstance(s, Assign)]
    injected: list[Statement] = []
    for node in RenderTree(component.root):
        for event, param in node.events.items():
            assign = Assign(node.event_variable(event), ParamRef(param))
            if assign not in existing:
                injected.append(assign)
    if not injected:
        return component
    return replace(component, logic=(*injected, *component.logic))


# Built-inハンドラを自動登録
register_meta_handler(shorthand_handler)
register_meta_handler(variable_declaration_handler)
register_meta_handler(event_assignment_handler)
