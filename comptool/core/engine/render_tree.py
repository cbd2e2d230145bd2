"""レンダーツリーモデル

前順走査（再開可能）と、ノードごとの依存変数集合を提供する。
"""

from __future__ import annotations

import re
from collections.abc import Iterator

import networkx as nx

from comptool.core.base.errors import MalformedTree
from comptool.core.base.ir import ComponentIR, RenderNode
from comptool.core.engine.logic import dependency_graph

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def style_name(node_id: str) -> str:
    """スタイルテーブルのキー名（先頭を小文字にしたID）"""
    return node_id[:1].lower() + node_id[1:]


class RenderTree:
    """レンダーツリー

    iter() のたびに新しい前順走査ジェネレータを返すため、何度でも走査できる。

    Attributes:
        root: ルートノード
    """

    def __init__(self, root: RenderNode) -> None:
        self.root = root

    def __iter__(self) -> Iterator[RenderNode]:
        return self._walk(self.root)

    def _walk(self, node: RenderNode) -> Iterator[RenderNode]:
        yield node
        for child in node.children:
            yield from self._walk(child)

    def find(self, node_id: str) -> RenderNode | None:
        return next((node for node in self if node.id == node_id), None)

    def parent_of(self, node_id: str) -> RenderNode | None:
        for node in self:
            if any(child.id == node_id for child in node.children):
                return node
        return None

    def check_shape(self) -> list[MalformedTree]:
        """ツリー形状の検証

        検証項目:
        - ノードIDがJavaScript識別子として有効
        - ノードIDの重複（スタイルテーブル名の衝突を含む）
        - 単一ルートの木構造（同一ノードの共有・循環がない）

        Returns:
            エラーのリスト
        """
        errors: list[MalformedTree] = []
        graph = nx.DiGraph()
        seen_ids: set[str] = set()
        seen_style_names: dict[str, str] = {}
        visited: set[int] = set()

        stack = [self.root]
        graph.add_node(id(self.root))
        while stack:
            node = stack.pop()
            if id(node) in visited:
                continue
            visited.add(id(node))

            if not _IDENTIFIER.match(node.id):
                errors.append(MalformedTree(node.id, "node identifier is not a valid identifier"))
            if node.id in seen_ids:
                errors.append(MalformedTree(node.id, "duplicate node identifier"))
            else:
                other = seen_style_names.get(style_name(node.id))
                if other is not None:
                    errors.append(MalformedTree(node.id, f"style table name collides with node '{other}'"))
                seen_style_names[style_name(node.id)] = node.id
            seen_ids.add(node.id)

            for child in node.children:
                graph.add_edge(id(node), id(child))
                stack.append(child)

        if not nx.is_arborescence(graph):
            errors.append(MalformedTree(self.root.id, "render tree is not a single rooted tree"))
        return errors


def node_variables(node: RenderNode) -> set[str]:
    """ノードのバインディング（スタイル・テキスト・イベント）が直接参照する変数"""
    names = set(node.bindings.values())
    if node.text_binding:
        names.add(node.text_binding)
    names.update(node.event_variable(event) for event in node.events)
    return names


def node_dependencies(component: ComponentIR, node: RenderNode) -> set[str]:
    """ノードのバインディングが依存する変数集合（推移的）

    Args:
        component: IR
        node: 対象ノード

    Returns:
        変数名の集合
    """
    graph = dependency_graph(component)
    direct = node_variables(node)
    result = set(direct)
    for name in direct:
        if name in graph:
            result.update(nx.ancestors(graph, name))
    return result
