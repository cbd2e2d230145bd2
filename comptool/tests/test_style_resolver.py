"""スタイル解決のテスト"""

import itertools

import pytest

from comptool.backends import react_native, sketch
from comptool.core.base.errors import UnknownToken
from comptool.core.base.ir import Environment
from comptool.core.engine.loader import parse_component
from comptool.core.engine.normalizer import normalize_ir
from comptool.core.engine.render_tree import RenderTree
from comptool.core.engine.style_resolver import resolve_content, resolve_style, resolve_tree, static_subset


def test_identity_without_bindings(load_fixture, catalog):
    """動的バインディングのないノードは静的スタイルそのもの（トークンは具体値）"""
    component = load_fixture("FixedParentFitChild")
    resolved = resolve_tree(component, Environment(), catalog)

    assert resolved["View"] == {
        "alignSelf": "stretch",
        "backgroundColor": "#CFD8DC",
        "paddingTop": 24,
        "paddingRight": 24,
        "paddingBottom": 24,
        "paddingLeft": 24,
        "height": 600,
    }
    assert resolved["View5"] == {"backgroundColor": "#FFAB91", "marginLeft": 12, "width": 60, "height": 60}


def test_static_subset_excludes_bound_keys(load_fixture):
    """動的バインディングのあるキーは静的部分に含まれない"""
    component = load_fixture("If")

    assert list(static_subset(component.root)) == ["alignSelf"]


def test_dynamic_binding_overrides_static(load_fixture, catalog):
    """動的バインディングは同じキーの静的値より優先される"""
    component = load_fixture("If")

    enabled = resolve_style(component, component.root, Environment(parameters={"enabled": True}), catalog)
    disabled = resolve_style(component, component.root, Environment(parameters={"enabled": False}), catalog)

    assert enabled == {"alignSelf": "stretch", "backgroundColor": "#F44336"}
    assert disabled == {"alignSelf": "stretch", "backgroundColor": "transparent"}


def test_margin_fan_out(load_fixture, catalog):
    """marginの代入は4辺それぞれに同じ値で反映される"""
    component = load_fixture("BoxModelConditional")
    inner = component.root.children[0]

    resolved = resolve_style(component, inner, Environment(parameters={"margin": 8, "size": 20}), catalog)

    assert list(resolved) == [
        "backgroundColor",
        "marginTop",
        "marginRight",
        "marginBottom",
        "marginLeft",
        "width",
        "height",
    ]
    assert resolved["marginTop"] == resolved["marginRight"] == resolved["marginBottom"] == resolved["marginLeft"] == 8
    assert resolved["width"] == resolved["height"] == 20


def test_text_style_spread(load_fixture, catalog):
    """テキストスタイルのトークンはプロパティとして展開される"""
    component = load_fixture("TextStyleConditional")
    text = component.root.children[0]

    large = resolve_style(component, text, Environment(parameters={"large": True}), catalog)
    regular = resolve_style(component, text, Environment(), catalog)

    assert large == catalog.text_styles["display2"]
    assert regular == catalog.text_styles["headline"]
    assert "textStyle" not in large


def test_text_style_with_local_override(catalog):
    """局所的なキーはテキストスタイルの同名プロパティだけを上書きする"""
    data = {
        "meta": {"name": "Label"},
        "root": {
            "id": "Label",
            "kind": "text",
            "text": "Hello",
            "style": {"color": {"color": "red500"}, "textStyle": "headline"},
        },
    }
    component = normalize_ir(parse_component(data))

    resolved = resolve_style(component, component.root, Environment(), catalog)

    assert resolved == {**catalog.text_styles["headline"], "color": "#F44336"}
    # カタログは変更されない
    assert catalog.text_styles["headline"]["color"] == "#000000DE"


def test_bound_text_style_keeps_local_override(load_fixture, catalog):
    """テキストスタイルが動的でも、局所的な静的キーは展開後に残る"""
    component = load_fixture("TextStyleOverride")

    large = resolve_style(component, component.root, Environment(parameters={"large": True}), catalog)
    regular = resolve_style(component, component.root, Environment(), catalog)

    assert large == {**catalog.text_styles["display2"], "fontWeight": "700"}
    assert regular == {**catalog.text_styles["headline"], "fontWeight": "700"}
    assert large["fontSize"] == 45
    assert regular["fontSize"] == 24


def test_unknown_token(catalog):
    """カタログにないトークンはUnknownToken"""
    data = {"meta": {"name": "Sample"}, "root": {"id": "View", "style": {"backgroundColor": {"color": "magenta"}}}}
    component = normalize_ir(parse_component(data))

    with pytest.raises(UnknownToken):
        resolve_style(component, component.root, Environment(), catalog)


def test_resolve_content(load_fixture):
    """テキスト内容の解決"""
    component = load_fixture("PressableRootView")
    inner_text = RenderTree(component.root).find("InnerText")
    parameters = {"onPressOuter": "outer", "onPressInner": "inner"}

    assert resolve_content(component, inner_text, Environment(parameters=parameters)) == ""
    pressed = Environment(parameters=parameters, states={"Inner.pressed": True})
    assert resolve_content(component, inner_text, pressed) == "Pressed"

    static = load_fixture("TextStyleConditional")
    assert resolve_content(static, static.root.children[0], Environment()) == "Text goes here"


def test_cross_backend_equivalence(load_fixture, catalog):
    """同じ環境に対して全バックエンドの解決結果が一致する"""
    component = load_fixture("PressableRootView")
    parameters = {"onPressOuter": "outer", "onPressInner": "inner"}
    states = ("Outer.hovered", "Outer.pressed", "Inner.hovered", "Inner.pressed")

    for flags in itertools.product([False, True], repeat=len(states)):
        environment = Environment(parameters=parameters, states=dict(zip(states, flags)))
        on_react_native = resolve_tree(component, environment, catalog, react_native.PROFILE)
        on_sketch = resolve_tree(component, environment, catalog, sketch.PROFILE)
        assert on_react_native == on_sketch
