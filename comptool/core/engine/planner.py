"""エミッション計画

バックエンドに依存しない形で、ノードごとのスタイルテーブル項目・動的上書き・
変数宣言と初期化を確定する。各バックエンドはこの計画を構文に写すだけでよい。
"""

from __future__ import annotations

from dataclasses import dataclass, field

from comptool.core.base.ir import ComponentIR, Expr, RenderNode, TokenRef
from comptool.core.engine.logic import condition_refs, iter_assigns, iter_conditions
from comptool.core.engine.render_tree import RenderTree, style_name
from comptool.core.engine.style_resolver import dynamic_keys, restated_keys, static_subset


@dataclass(frozen=True)
class NodePlan:
    """ノード単位のエミッション計画

    Attributes:
        node: 対象ノード
        style_name: スタイルテーブルのキー
        static_style: テーブルに置く静的スタイル（動的バインディングのないキーのみ）
        overrides: 動的上書き（キー, 変数名）の正規順序リスト
        restated: 動的テキストスタイルの展開後に再適用する静的キー
    """

    node: RenderNode
    style_name: str
    static_style: dict[str, Expr]
    overrides: list[tuple[str, str]] = field(default_factory=list)
    restated: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ComponentPlan:
    """コンポーネント単位のエミッション計画

    Attributes:
        component: 正規化・検証済みIR
        nodes: 前順に並んだノード計画
        declarations: 宣言する変数名（名前順）
        defaults: 無条件の初期化（変数名, 値式）（名前順）
        kinds: 使用するノード種別
        tokens: 使用するトークン（出現順・重複なし）
    """

    component: ComponentIR
    nodes: list[NodePlan]
    declarations: list[str]
    defaults: list[tuple[str, Expr]]
    kinds: set[str]
    tokens: list[TokenRef]

    def node_plan(self, node_id: str) -> NodePlan:
        return next(plan for plan in self.nodes if plan.node.id == node_id)


def plan_component(component: ComponentIR) -> ComponentPlan:
    """IRからエミッション計画を作成

    Args:
        component: 正規化・検証済みIR

    Returns:
        ComponentPlan
    """
    nodes = [
        NodePlan(
            node=node,
            style_name=style_name(node.id),
            static_style=static_subset(node),
            overrides=[(key, node.bindings[key]) for key in dynamic_keys(node)],
            restated=restated_keys(node),
        )
        for node in RenderTree(component.root)
    ]
    declarations = sorted(v.name for v in component.variables)
    defaults = [(v.name, v.default) for v in sorted(component.variables, key=lambda v: v.name) if v.default is not None]

    return ComponentPlan(
        component=component,
        nodes=nodes,
        declarations=declarations,
        defaults=defaults,
        kinds={plan.node.kind for plan in nodes},
        tokens=_collect_tokens(component, nodes, defaults),
    )


def _collect_tokens(component: ComponentIR, nodes: list[NodePlan], defaults: list[tuple[str, Expr]]) -> list[TokenRef]:
    tokens: list[TokenRef] = []

    def add(expr: object) -> None:
        if isinstance(expr, TokenRef) and expr not in tokens:
            tokens.append(expr)

    for plan in nodes:
        for value in plan.static_style.values():
            add(value)
    for _, value in defaults:
        add(value)
    for assign, _ in iter_assigns(component.logic):
        add(assign.value)
    for condition in iter_conditions(component.logic):
        for ref in condition_refs(condition):
            add(ref)
    return tokens
