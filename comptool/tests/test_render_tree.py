"""レンダーツリーモデルのテスト"""

from comptool.core.base.ir import RenderNode
from comptool.core.engine.render_tree import RenderTree, node_dependencies, style_name


def test_preorder_traversal(load_fixture):
    """前順で走査され、何度でも再走査できる"""
    tree = RenderTree(load_fixture("FixedParentFitChild").root)

    first = [node.id for node in tree]
    second = [node.id for node in tree]

    assert first == ["View", "View1", "View4", "View5"]
    assert second == first


def test_independent_iterators(load_fixture):
    """iter() のたびに独立したジェネレータが返る"""
    tree = RenderTree(load_fixture("FixedParentFitChild").root)
    outer = iter(tree)
    next(outer)
    inner = iter(tree)

    assert next(inner).id == "View"
    assert next(outer).id == "View1"


def test_find_and_parent(load_fixture):
    """IDでノードと親を検索"""
    tree = RenderTree(load_fixture("PressableRootView").root)

    assert tree.find("InnerText").kind == "text"
    assert tree.find("Missing") is None
    assert tree.parent_of("InnerText").id == "Inner"
    assert tree.parent_of("Outer") is None


def test_style_name():
    """スタイルテーブルのキーは先頭を小文字にしたID"""
    assert style_name("InnerText") == "innerText"
    assert style_name("View1") == "view1"
    assert style_name("x") == "x"


def test_node_dependencies(load_fixture):
    """ノードが依存する変数は条件を通じて推移的に求まる"""
    component = load_fixture("PressableRootView")
    tree = RenderTree(component.root)

    assert node_dependencies(component, tree.find("Inner")) == {
        "Inner.backgroundColor",
        "Inner.onPress",
        "Inner.hovered",
        "Inner.pressed",
    }
    assert node_dependencies(component, tree.find("InnerText")) == {
        "InnerText.text",
        "Inner.hovered",
        "Inner.pressed",
    }


def test_check_shape_valid(load_fixture):
    """正しいツリーはエラーなし"""
    assert RenderTree(load_fixture("PressableRootView").root).check_shape() == []


def test_check_shape_duplicate_id():
    """重複IDはMalformedTree"""
    root = RenderNode(id="Row", children=(RenderNode(id="Cell"), RenderNode(id="Cell")))
    errors = RenderTree(root).check_shape()

    assert [error.kind for error in errors] == ["MalformedTree"]
    assert errors[0].target == "Cell"


def test_check_shape_invalid_identifier_and_collision():
    """識別子として無効なID、スタイル名の衝突はMalformedTree"""
    root = RenderNode(id="Row", children=(RenderNode(id="my-cell"), RenderNode(id="row")))
    targets = {error.target for error in RenderTree(root).check_shape()}

    assert targets == {"my-cell", "row"}


def test_check_shape_shared_node():
    """同じノードが複数の親を持つとMalformedTree"""
    shared = RenderNode(id="Shared")
    root = RenderNode(id="Root", children=(shared, RenderNode(id="Other", children=(shared,))))
    errors = RenderTree(root).check_shape()

    assert any("single rooted tree" in error.message for error in errors)
