"""Validatorのテスト"""

from pathlib import Path

import pytest

from comptool.backends import react_native, sketch
from comptool.core.base.errors import MalformedTree, UnsupportedPrimitive
from comptool.core.engine.loader import load_component, parse_component
from comptool.core.engine.normalizer import normalize_ir
from comptool.core.engine.validate import check_ir, format_errors, validate_ir

FIXTURES = Path(__file__).parent / "fixtures"


def _component(root, parameters=(), logic=(), variables=()):
    data = {
        "meta": {"name": "Sample"},
        "parameters": list(parameters),
        "variables": list(variables),
        "root": root,
        "logic": list(logic),
    }
    return normalize_ir(parse_component(data))


def _kinds(errors):
    return [error.kind for error in errors]


@pytest.mark.parametrize(
    "name",
    [
        "If",
        "BoxModelConditional",
        "TextStyleConditional",
        "TextStyleOverride",
        "FixedParentFitChild",
        "PressableRootView",
        "SearchField",
    ],
)
def test_fixtures_are_valid(load_fixture, catalog, name):
    """フィクスチャの仕様は全て妥当"""
    assert validate_ir(load_fixture(name), catalog, react_native.PROFILE) == []


def test_duplicate_identifier(catalog):
    """重複IDはMalformedTreeで、後続の検証は行わない"""
    component = normalize_ir(load_component(FIXTURES / "duplicate_id.yaml"))
    errors = validate_ir(component, catalog, react_native.PROFILE)

    assert _kinds(errors) == ["MalformedTree"]
    assert errors[0].target == "Cell"
    with pytest.raises(MalformedTree):
        check_ir(component)


def test_event_references():
    """イベントは宣言されたhandler型パラメータを参照しなければならない"""
    component = _component(
        root={"id": "Button", "kind": "interactive", "events": {"onPress": "onTap", "onLongPress": "label"}},
        parameters=[{"name": "label", "type": "string"}],
    )
    errors = validate_ir(component)

    assert ("UnresolvedReference", "onTap") in [(error.kind, error.target) for error in errors]
    assert ("TypeMismatch", "label") in [(error.kind, error.target) for error in errors]


def test_assignment_type_mismatch():
    """宣言型と互換でない代入はTypeMismatch"""
    component = _component(
        root={"id": "View", "style": {"backgroundColor": "transparent"}, "bindings": ["backgroundColor"]},
        logic=[{"assign": {"target": "View.backgroundColor", "value": 5}}],
    )

    assert _kinds(validate_ir(component)) == ["TypeMismatch"]


def test_static_style_type_mismatch():
    """静的スタイル値の型も検証される"""
    component = _component(root={"id": "View", "style": {"width": "wide"}})

    errors = validate_ir(component)
    assert _kinds(errors) == ["TypeMismatch"]
    assert errors[0].target == "View.width"


def test_condition_must_be_boolean():
    """真偽判定の対象はboolean型"""
    component = _component(
        root={"id": "View", "style": {"opacity": 1}, "bindings": ["opacity"]},
        parameters=[{"name": "title", "type": "string"}],
        logic=[{"if": {"param": "title"}, "then": [{"assign": {"target": "View.opacity", "value": 0}}]}],
    )

    assert _kinds(validate_ir(component)) == ["TypeMismatch"]


def test_undeclared_references():
    """未宣言の代入先・パラメータはUnresolvedReference"""
    component = _component(
        root={"id": "View", "style": {"opacity": 1}, "bindings": ["opacity"]},
        logic=[
            {"assign": {"target": "View.width", "value": 10}},
            {"if": {"param": "missing"}, "then": [{"assign": {"target": "View.opacity", "value": 0}}]},
        ],
    )
    targets = {(error.kind, error.target) for error in validate_ir(component)}

    assert ("UnresolvedReference", "View.width") in targets
    assert ("UnresolvedReference", "missing") in targets


def test_null_assignment():
    """null の代入は handler 以外の変数ではTypeMismatch"""
    component = _component(
        root={
            "id": "View",
            "style": {"backgroundColor": "#FFFFFF", "width": 10},
            "bindings": ["backgroundColor", "width"],
        },
        logic=[
            {"assign": {"target": "View.backgroundColor", "value": None}},
            {"assign": {"target": "View.width", "value": None}},
        ],
    )
    errors = validate_ir(component)

    assert [(error.kind, error.target) for error in errors] == [
        ("TypeMismatch", "View.backgroundColor"),
        ("TypeMismatch", "View.width"),
    ]


def test_conditional_first_assignment():
    """既定値のない変数の最初の代入が条件付きならMalformedTree"""
    component = _component(
        root={"id": "Label", "kind": "text", "bindings": ["text"]},
        parameters=[{"name": "enabled", "type": "boolean"}],
        logic=[{"if": {"param": "enabled"}, "then": [{"assign": {"target": "Label.text", "value": "on"}}]}],
    )
    errors = validate_ir(component)

    assert _kinds(errors) == ["MalformedTree"]
    assert errors[0].target == "Label.text"


def test_read_before_assignment():
    """代入前の変数の読み出しはUnresolvedReference"""
    component = _component(
        root={"id": "View", "bindings": ["width", "height"]},
        logic=[
            {"assign": {"target": "View.width", "value": {"var": "View.height"}}},
            {"assign": {"target": "View.height", "value": 10}},
        ],
    )
    errors = validate_ir(component)

    assert ("UnresolvedReference", "View.height") in [(error.kind, error.target) for error in errors]


def test_dependency_cycle():
    """変数間の循環依存はMalformedTree"""
    component = _component(
        root={"id": "View", "style": {"width": 10, "height": 10}, "bindings": ["width", "height"]},
        logic=[
            {"assign": {"target": "View.width", "value": {"var": "View.height"}}},
            {"assign": {"target": "View.height", "value": {"var": "View.width"}}},
        ],
    )

    assert _kinds(validate_ir(component)) == ["MalformedTree"]


def test_unknown_token(load_fixture, catalog):
    """カタログ指定時はトークンの存在を検証する"""
    component = _component(root={"id": "View", "style": {"backgroundColor": {"color": "magenta"}}})

    assert validate_ir(component) == []
    errors = validate_ir(component, catalog)
    assert _kinds(errors) == ["UnknownToken"]
    assert errors[0].target == "magenta"


def test_unsupported_primitive(load_fixture, catalog):
    """プロファイル指定時はノード種別の対応を検証する"""
    component = load_fixture("SearchField")

    errors = validate_ir(component, catalog, sketch.PROFILE)
    assert _kinds(errors) == ["UnsupportedPrimitive"]
    assert errors[0].target == "Field"
    with pytest.raises(UnsupportedPrimitive):
        check_ir(component, catalog, sketch.PROFILE)


def test_format_errors():
    """エラーは種別ごとにまとめて整形される"""
    component = _component(
        root={"id": "View", "style": {"width": "wide"}, "events": {"onPress": "onTap"}},
    )
    formatted = format_errors(validate_ir(component))

    assert "TypeMismatch:\n  - View.width:" in formatted
    assert "UnresolvedReference:\n  - onTap:" in formatted
