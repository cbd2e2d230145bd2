"""JSX系バックエンド共通の式・条件・文の描画

IRの値式・条件式・代入文をJavaScriptのソース断片（行のリスト）に変換する。
条件分岐の構文はプロファイルの conditional_syntax で切り替える。
"""

from __future__ import annotations

import json
from typing import Any

from comptool.core.base.ir import (
    And,
    Assign,
    Compare,
    Condition,
    Expr,
    IfBlock,
    IsTrue,
    LiteralValue,
    Not,
    Or,
    ParamRef,
    Statement,
    TokenRef,
    VarRef,
)
from comptool.core.engine.profile import BackendProfile
from comptool.core.engine.tokens import TokenCatalog, lookup

INDENT = "  "

_JS_OPERATORS = {"==": "===", "!=": "!=="}


def js_identifier(variable: str) -> str:
    """変数名（Node.prop）をJavaScript識別子（Node$prop）に変換"""
    return variable.replace(".", "$")


def render_literal(value: Any) -> str:
    """リテラル値をJavaScriptリテラルに変換"""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, dict):
        if not value:
            return "{}"
        entries = ", ".join(f"{key}: {render_literal(item)}" for key, item in value.items())
        return f"{{ {entries} }}"
    return json.dumps(value, ensure_ascii=False)


class JsxCodeRenderer:
    """式・条件・文の描画器

    Attributes:
        profile: バックエンドプロファイル
        catalog: トークンカタログ（スナップショット）
    """

    def __init__(self, profile: BackendProfile, catalog: TokenCatalog) -> None:
        self.profile = profile
        self.catalog = catalog

    # ---------- 値式 ----------

    def expr(self, expr: Expr) -> str:
        if isinstance(expr, LiteralValue):
            return render_literal(expr.value)
        if isinstance(expr, ParamRef):
            return f"this.props.{expr.name}"
        if isinstance(expr, VarRef):
            return js_identifier(expr.name)
        if isinstance(expr, TokenRef):
            return lookup(expr.name, expr.category, self.profile, self.catalog)
        raise TypeError(f"Unsupported expression: {expr!r}")

    # ---------- 条件式 ----------

    def condition(self, condition: Condition) -> str:
        if isinstance(condition, IsTrue):
            return self.expr(condition.operand)
        if isinstance(condition, Not):
            inner = self.condition(condition.condition)
            if isinstance(condition.condition, (IsTrue, Not)):
                return f"!{inner}"
            return f"!({inner})"
        if isinstance(condition, And):
            return " && ".join(self._operand(c, Or) for c in condition.conditions)
        if isinstance(condition, Or):
            return " || ".join(self._operand(c, And) for c in condition.conditions)
        if isinstance(condition, Compare):
            op = _JS_OPERATORS.get(condition.op, condition.op)
            return f"{self.expr(condition.left)} {op} {self.expr(condition.right)}"
        raise TypeError(f"Unsupported condition: {condition!r}")

    def _operand(self, condition: Condition, wrapped: type) -> str:
        # && の中の || と、|| の中の && は括弧で囲む
        text = self.condition(condition)
        if isinstance(condition, wrapped):
            return f"({text})"
        return text

    # ---------- 文 ----------

    def statements(self, statements: tuple[Statement, ...], depth: int) -> list[str]:
        """代入文・条件ブロックを行のリストに変換

        Args:
            statements: 宣言順の文
            depth: インデント段数

        Returns:
            インデント済みの行
        """
        lines: list[str] = []
        for statement in statements:
            if isinstance(statement, Assign):
                lines.append(self.assign(statement, depth))
            elif self.profile.conditional_syntax == "nested-if":
                lines.extend(self._nested_if(statement, depth))
            else:
                lines.extend(self._if_chain(statement, depth))
        return lines

    def assign(self, statement: Assign, depth: int) -> str:
        return f"{INDENT * depth}{js_identifier(statement.target)} = {self.expr(statement.value)}"

    def _if_chain(self, block: IfBlock, depth: int) -> list[str]:
        pad = INDENT * depth
        lines = [f"{pad}if ({self.condition(block.condition)}) {{"]
        lines.extend(self.statements(block.body, depth + 1))

        orelse = block.orelse
        while len(orelse) == 1 and isinstance(orelse[0], IfBlock):
            chained = orelse[0]
            lines.append(f"{pad}}} else if ({self.condition(chained.condition)}) {{")
            lines.extend(self.statements(chained.body, depth + 1))
            orelse = chained.orelse
        if orelse:
            lines.append(f"{pad}}} else {{")
            lines.extend(self.statements(orelse, depth + 1))
        lines.append(f"{pad}}}")
        return lines

    def _nested_if(self, block: IfBlock, depth: int) -> list[str]:
        pad = INDENT * depth
        if isinstance(block.condition, And) and len(block.condition.conditions) > 1 and not block.orelse:
            # 論理積は入れ子のifに分割する（else節がある場合は分割できない）
            first, *rest = block.condition.conditions
            inner: Statement = IfBlock(And(tuple(rest)), block.body) if len(rest) > 1 else IfBlock(rest[0], block.body)
            lines = [f"{pad}if ({self.condition(first)}) {{"]
            lines.extend(self.statements((inner,), depth + 1))
            lines.append(f"{pad}}}")
            return lines

        lines = [f"{pad}if ({self.condition(block.condition)}) {{"]
        lines.extend(self.statements(block.body, depth + 1))
        if block.orelse:
            lines.append(f"{pad}}} else {{")
            lines.extend(self.statements(block.orelse, depth + 1))
        lines.append(f"{pad}}}")
        return lines
