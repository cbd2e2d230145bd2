"""JSXコンポーネント生成バックエンド

エミッション計画からReact系フレームワークのコンポーネントソースを生成する。
構成:
1. import文（React、フレームワークのプリミティブ、トークンモジュール）
2. render() を持つコンポーネントクラス（変数宣言・初期化・ロジック・JSXツリー）
3. defaultProps（既定値を持つパラメータがある場合のみ）
4. スタイルテーブル（動的バインディングのない静的キーのみ）

出力は同じ入力に対して常にバイト単位で同一になる。
"""

from __future__ import annotations

import json

from comptool.backends.jsx_code import INDENT, JsxCodeRenderer, js_identifier, render_literal
from comptool.core.base.errors import UnsupportedPrimitive
from comptool.core.base.ir import TOKEN_CATEGORIES, ComponentIR
from comptool.core.base.style_keys import TEXT_STYLE_KEY
from comptool.core.engine.planner import ComponentPlan, NodePlan
from comptool.core.engine.profile import BackendProfile
from comptool.core.engine.tokens import TokenCatalog

MAX_WIDTH = 80


def component_filename(component: ComponentIR, profile: BackendProfile) -> str:
    """出力ファイル名（<category>/<Name><ext>）"""
    filename = f"{component.meta.name}{profile.file_extension}"
    if component.meta.category:
        return f"{component.meta.category}/{filename}"
    return filename


def emit_component(
    component: ComponentIR,
    plan: ComponentPlan,
    profile: BackendProfile,
    catalog: TokenCatalog,
) -> list[tuple[str, str]]:
    """コンポーネントのソースファイルを生成

    Args:
        component: 正規化・検証済みIR
        plan: エミッション計画
        profile: バックエンドプロファイル
        catalog: トークンカタログ（スナップショット）

    Returns:
        (ファイル名, ソース) のリスト

    Raises:
        UnsupportedPrimitive: プロファイルにないノード種別を使用している
        UnknownToken: トークンにアクセス方法がない
    """
    for node_plan in plan.nodes:
        if not profile.supports(node_plan.node.kind):
            raise UnsupportedPrimitive(
                node_plan.node.id, f"backend '{profile.name}' has no primitive for '{node_plan.node.kind}' nodes"
            )

    emitter = _ComponentEmitter(component, plan, profile, catalog)
    return [(component_filename(component, profile), emitter.source())]


class _ComponentEmitter:
    def __init__(
        self, component: ComponentIR, plan: ComponentPlan, profile: BackendProfile, catalog: TokenCatalog
    ) -> None:
        self.component = component
        self.plan = plan
        self.profile = profile
        self.code = JsxCodeRenderer(profile, catalog)

    def source(self) -> str:
        sections = [self._framework_imports()]
        token_imports = self._token_imports()
        if token_imports:
            sections.append(token_imports)
        sections.append(self._component_class())
        default_props = self._default_props()
        if default_props:
            sections.append(default_props)
        sections.append(self._styles_table())
        return "\n\n".join("\n".join(section) for section in sections) + "\n"

    # ==================== import ====================

    def _framework_imports(self) -> list[str]:
        names = sorted({self.profile.primitive_kinds[kind] for kind in self.plan.kinds})
        if self.profile.style_table == "stylesheet-create":
            names.append("StyleSheet")
        for category in TOKEN_CATEGORIES:
            access = self.profile.token_access.get(category)
            if access and access.mode == "runtime-call" and access.framework_import not in names:
                names.append(access.framework_import)

        line = f"import {{ {', '.join(names)} }} from"
        module = json.dumps(self.profile.module)
        if _fits(0, f"{line} {module}"):
            return ['import React from "react"', f"{line} {module}"]
        return ['import React from "react"', line, f"{INDENT}{module}"]

    def _token_imports(self) -> list[str]:
        lines: list[str] = []
        for category in TOKEN_CATEGORIES:
            access = self.profile.token_access.get(category)
            if access and access.import_line and access.import_line not in lines:
                lines.append(access.import_line)
        return lines

    # ==================== コンポーネント ====================

    def _component_class(self) -> list[str]:
        body = INDENT * 2
        lines = [
            f"export default class {self.component.meta.name} extends React.Component {{",
            f"{INDENT}render() {{",
            "",
        ]
        lines.extend(f"{body}let {js_identifier(name)}" for name in self.plan.declarations)
        lines.extend(
            f"{body}{js_identifier(name)} = {self.code.expr(value)}" for name, value in self.plan.defaults
        )
        if self.component.logic:
            lines.append("")
            lines.extend(self.code.statements(self.component.logic, 2))

        lines.append(f"{body}return (")
        lines.extend(self._element(self.plan.nodes[0], 3))
        lines.extend([f"{body});", f"{INDENT}}}", "};"])
        return lines

    def _default_props(self) -> list[str]:
        entries = [
            f"{param.name}: {render_literal(param.default)}" for param in self.component.parameters if param.has_default
        ]
        if not entries:
            return []
        return _object_lines(f"{self.component.meta.name}.defaultProps = ", entries, ";", 0)

    # ==================== JSX ====================

    def _element(self, node_plan: NodePlan, depth: int) -> list[str]:
        node = node_plan.node
        pad = INDENT * depth
        tag = self.profile.primitive_kinds[node.kind]
        content = self._content(node_plan)

        attrs = [f"{event}={{{js_identifier(node.event_variable(event))}}}" for event in sorted(node.events)]
        if node.kind == "input" and content is not None:
            attrs.append(f"{self.profile.text_input_prop}={{{content}}}")

        children = [self.plan.node_plan(child.id) for child in node.children]
        text_child = content if node.kind != "input" else None
        has_children = bool(children) or text_child is not None

        style_inline = f"style={{[ styles.{node_plan.style_name}, {_inline(self._overrides(node_plan))} ]}}"
        opening = f"<{tag} {' '.join([style_inline, *attrs])}" + (">" if has_children else " />")
        if _fits(depth, opening):
            lines = [pad + opening]
        else:
            lines = [f"{pad}<{tag}"]
            lines.extend(self._style_attr_lines(node_plan, style_inline, depth + 1))
            lines.extend(f"{pad}{INDENT}{attr}" for attr in attrs)
            lines.append(pad + (">" if has_children else "/>"))

        if not has_children:
            return lines
        if text_child is not None:
            lines.append(f"{pad}{INDENT}{{{text_child}}}")
        for child in children:
            lines.extend(self._element(child, depth + 1))
        lines.append(f"{pad}</{tag}>")
        return lines

    def _overrides(self, node_plan: NodePlan) -> list[str]:
        # テキストスタイルの展開を先頭に置き、局所的な静的キー、動的キーの順に上書きする
        spread = [f"...{js_identifier(variable)}" for key, variable in node_plan.overrides if key == TEXT_STYLE_KEY]
        restated = [f"{key}: {self.code.expr(node_plan.static_style[key])}" for key in node_plan.restated]
        keyed = [f"{key}: {js_identifier(variable)}" for key, variable in node_plan.overrides if key != TEXT_STYLE_KEY]
        return [*spread, *restated, *keyed]

    def _style_attr_lines(self, node_plan: NodePlan, style_inline: str, depth: int) -> list[str]:
        pad = INDENT * depth
        if _fits(depth, style_inline):
            return [pad + style_inline]
        inner = INDENT * (depth + 1)
        lines = [f"{pad}style={{[", f"{inner}styles.{node_plan.style_name},"]
        lines.extend(_object_lines("", self._overrides(node_plan), "", depth + 1, force_multiline=True))
        lines.append(f"{pad}]}}")
        return lines

    def _content(self, node_plan: NodePlan) -> str | None:
        node = node_plan.node
        if node.text_binding:
            return js_identifier(node.text_binding)
        if node.text is not None:
            return render_literal(node.text)
        return None

    # ==================== スタイルテーブル ====================

    def _styles_table(self) -> list[str]:
        entries = {plan.style_name: self._static_entries(plan) for plan in self.plan.nodes}
        if self.profile.style_table == "stylesheet-create":
            prefix, suffix = "let styles = StyleSheet.create(", ")"
        else:
            prefix, suffix = "let styles = ", ""

        inline = [f"{name}: {_inline(values)}" for name, values in entries.items()]
        one_line = f"{prefix}{_inline(inline)}{suffix}"
        if _fits(0, one_line):
            return [one_line]

        lines = [f"{prefix}{{"]
        names = list(entries)
        for index, name in enumerate(names):
            comma = "," if index < len(names) - 1 else ""
            lines.extend(_object_lines(f"{name}: ", entries[name], comma, 1))
        lines.append(f"}}{suffix}")
        return lines

    def _static_entries(self, node_plan: NodePlan) -> list[str]:
        entries = []
        for key, value in node_plan.static_style.items():
            rendered = self.code.expr(value)
            if key == TEXT_STYLE_KEY:
                entries.insert(0, f"...{rendered}")
            else:
                entries.append(f"{key}: {rendered}")
        return entries


def _fits(depth: int, text: str) -> bool:
    return len(INDENT * depth) + len(text) <= MAX_WIDTH


def _inline(entries: list[str]) -> str:
    if not entries:
        return "{}"
    return f"{{ {', '.join(entries)} }}"


def _object_lines(prefix: str, entries: list[str], suffix: str, depth: int, force_multiline: bool = False) -> list[str]:
    """オブジェクトリテラルを1行に収まれば1行、収まらなければ1項目1行で描画"""
    pad = INDENT * depth
    one_line = f"{prefix}{_inline(entries)}{suffix}"
    if not entries or (not force_multiline and _fits(depth, one_line)):
        return [pad + one_line]
    lines = [f"{pad}{prefix}{{"]
    lines.extend(f"{pad}{INDENT}{entry}," for entry in entries[:-1])
    lines.append(f"{pad}{INDENT}{entries[-1]}")
    lines.append(f"{pad}}}{suffix}")
    return lines
