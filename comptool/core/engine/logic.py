"""ロジックIRの評価

代入文を宣言順に上から下へ実行し、条件が成立した代入ほど後勝ちになる。
データフロー解析ではなく、テキスト順の逐次上書きとして評価する。
"""

from __future__ import annotations

import operator
from collections.abc import Iterator
from typing import Any, Callable

import networkx as nx

from comptool.core.base.errors import MalformedTree, TypeMismatch, UnresolvedReference
from comptool.core.base.ir import (
    And,
    Assign,
    Assignment,
    Compare,
    ComponentIR,
    Condition,
    Environment,
    Expr,
    IfBlock,
    IsTrue,
    LiteralValue,
    Not,
    Or,
    ParamRef,
    Statement,
    TokenRef,
    VariableSpec,
    VarRef,
)

_COMPARE_FUNCS: dict[str, Callable[[Any, Any], bool]] = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}

_UNSET = object()

# nullを代入できる型（未設定のハンドラ）
NULLABLE_TYPES = frozenset(["handler"])


# ==================== 型 ====================


def literal_type(value: Any) -> str | None:
    """リテラル値の型名を推論"""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, dict):
        return "text-style"
    return None


def expr_type(expr: Expr, component: ComponentIR) -> str | None:
    """値式の静的な型を返す

    Raises:
        UnresolvedReference: 未宣言のパラメータ・変数を参照している
    """
    if isinstance(expr, LiteralValue):
        return literal_type(expr.value)
    if isinstance(expr, ParamRef):
        param = component.parameter(expr.name)
        if param is None:
            raise UnresolvedReference(expr.name, "parameter is not declared")
        return param.type
    if isinstance(expr, VarRef):
        variable = component.variable(expr.name)
        if variable is None:
            raise UnresolvedReference(expr.name, "variable is not declared")
        return variable.type
    if isinstance(expr, TokenRef):
        return expr.category
    raise TypeError(f"Unsupported expression: {expr!r}")


def is_assignable(source: str | None, target: str | None) -> bool:
    """source型の値をtarget型の変数に代入できるか"""
    if source is None or target is None or source == target:
        return True
    if source == "null":
        return target in NULLABLE_TYPES
    # 文字列リテラルは色値・列挙値としても使える
    if source == "string" and target in ("color", "enum"):
        return True
    return source == "enum" and target == "string"


def check_assignment_type(target: VariableSpec, expr: Expr, component: ComponentIR) -> None:
    """代入値の型が変数の宣言型と互換かを検証

    Raises:
        TypeMismatch: 互換でない
    """
    source = expr_type(expr, component)
    if not is_assignable(source, target.type):
        raise TypeMismatch(target.name, f"cannot assign {source} value to {target.type} variable")


def check_value(value: Any, declared: str, name: str, enum_values: tuple[str, ...] = ()) -> None:
    """実行時の具体値を宣言型に照らして検証

    Raises:
        TypeMismatch: 宣言型と一致しない
    """
    if declared == "boolean":
        ok = isinstance(value, bool)
    elif declared == "number":
        ok = isinstance(value, (int, float)) and not isinstance(value, bool)
    elif declared in ("string", "color"):
        ok = isinstance(value, str)
    elif declared == "enum":
        ok = isinstance(value, str) and (not enum_values or value in enum_values)
    elif declared == "text-style":
        ok = isinstance(value, (dict, TokenRef))
    else:
        ok = True
    if not ok:
        raise TypeMismatch(name, f"value {value!r} is not a valid {declared}")


# ==================== 走査 ====================


def iter_assigns(statements: tuple[Statement, ...]) -> Iterator[tuple[Assign, tuple[Condition, ...]]]:
    """全ての代入文を、囲んでいる条件（else節は否定）と共に宣言順で列挙"""
    yield from _iter_assigns(statements, ())


def _iter_assigns(
    statements: tuple[Statement, ...], guards: tuple[Condition, ...]
) -> Iterator[tuple[Assign, tuple[Condition, ...]]]:
    for statement in statements:
        if isinstance(statement, Assign):
            yield statement, guards
        else:
            yield from _iter_assigns(statement.body, (*guards, statement.condition))
            yield from _iter_assigns(statement.orelse, (*guards, Not(statement.condition)))


def iter_conditions(statements: tuple[Statement, ...]) -> Iterator[Condition]:
    """全ての条件ブロックの条件式を宣言順で列挙（入れ子を含む）"""
    for statement in statements:
        if isinstance(statement, IfBlock):
            yield statement.condition
            yield from iter_conditions(statement.body)
            yield from iter_conditions(statement.orelse)


def condition_refs(condition: Condition) -> Iterator[Expr]:
    """条件式が参照する値式を列挙"""
    if isinstance(condition, IsTrue):
        yield condition.operand
    elif isinstance(condition, Not):
        yield from condition_refs(condition.condition)
    elif isinstance(condition, (And, Or)):
        for inner in condition.conditions:
            yield from condition_refs(inner)
    elif isinstance(condition, Compare):
        yield condition.left
        yield condition.right


def conjoin(guards: tuple[Condition, ...]) -> Condition | None:
    if not guards:
        return None
    if len(guards) == 1:
        return guards[0]
    return And(tuple(guards))


def assignments_for(component: ComponentIR, variable: str) -> list[Assignment]:
    """変数への代入を宣言順に平坦化（条件は囲んでいるブロックの論理積）

    既定値を持つ変数は、その既定値が無条件の先頭要素になる。
    """
    spec = component.variable(variable)
    if spec is None:
        raise UnresolvedReference(variable, "variable is not declared")

    result: list[Assignment] = []
    if spec.default is not None:
        result.append(Assignment(condition=None, value=spec.default))
    for assign, guards in iter_assigns(component.logic):
        if assign.target == variable:
            result.append(Assignment(condition=conjoin(guards), value=assign.value))
    return result


def dependency_graph(component: ComponentIR) -> nx.DiGraph:
    """変数間の依存グラフを構築（依存元 -> 依存先）

    代入値が参照する変数と、代入を囲む条件が参照する変数が依存元になる。
    """
    graph = nx.DiGraph()
    for variable in component.variables:
        graph.add_node(variable.name)
        if variable.default is not None and isinstance(variable.default, VarRef):
            graph.add_edge(variable.default.name, variable.name)

    for assign, guards in iter_assigns(component.logic):
        sources = [assign.value]
        for guard in guards:
            sources.extend(condition_refs(guard))
        for source in sources:
            if isinstance(source, VarRef):
                graph.add_edge(source.name, assign.target)
    return graph


def check_acyclic(component: ComponentIR) -> None:
    """変数の依存関係が循環していないことを検証

    Raises:
        MalformedTree: 循環依存がある
    """
    graph = dependency_graph(component)
    try:
        cycle = nx.find_cycle(graph)
    except nx.NetworkXNoCycle:
        return
    path = " -> ".join([edge[0] for edge in cycle] + [cycle[-1][1]])
    raise MalformedTree(cycle[0][0], f"variables depend on each other cyclically: {path}")


# ==================== 評価 ====================


class LogicEvaluator:
    """ロジックIRの評価器

    Attributes:
        component: 評価対象のIR
    """

    def __init__(self, component: ComponentIR) -> None:
        self.component = component
        self._variables = {v.name: v for v in component.variables}

    def run(self, environment: Environment) -> dict[str, Any]:
        """全代入文を宣言順に実行し、全変数の最終値を返す

        未代入のまま終わった変数（状態変数を除く）は結果に含まれない。
        トークン参照はTokenRefのまま返る（具体値への解決はスタイル解決で行う）。

        Args:
            environment: パラメータ・状態の具体値

        Returns:
            変数名 -> 値

        Raises:
            TypeMismatch: 環境の値・代入値の型が宣言型と一致しない
            UnresolvedReference: 未宣言の参照、未束縛のパラメータ、代入前の変数の読み出し
        """
        for name in environment.states:
            variable = self._variables.get(name)
            if variable is None or variable.role != "state":
                raise UnresolvedReference(name, "environment state does not name a state variable")

        state: dict[str, Any] = {}
        for name in sorted(self._variables):
            variable = self._variables[name]
            if variable.role == "state":
                value = environment.states.get(name, False)
                check_value(value, "boolean", name)
                state[name] = value
            elif variable.default is not None:
                if isinstance(variable.default, VarRef):
                    raise UnresolvedReference(name, "default value may not reference another variable")
                check_assignment_type(variable, variable.default, self.component)
                state[name] = self._eval(variable.default, environment, state)

        self._exec(self.component.logic, environment, state)
        return state

    def resolve(self, variable: str, environment: Environment) -> Any:
        """変数の最終値を返す（後勝ち）

        Raises:
            UnresolvedReference: 未宣言の変数、または一度も代入されない変数
        """
        if variable not in self._variables:
            raise UnresolvedReference(variable, "variable is not declared")
        state = self.run(environment)
        if variable not in state:
            raise UnresolvedReference(variable, "variable is never assigned")
        return state[variable]

    def assignments_for(self, variable: str) -> list[Assignment]:
        return assignments_for(self.component, variable)

    def _exec(self, statements: tuple[Statement, ...], environment: Environment, state: dict[str, Any]) -> None:
        for statement in statements:
            if isinstance(statement, Assign):
                target = self._variables.get(statement.target)
                if target is None:
                    raise UnresolvedReference(statement.target, "assignment target is not declared")
                check_assignment_type(target, statement.value, self.component)
                state[statement.target] = self._eval(statement.value, environment, state)
            elif isinstance(statement, IfBlock):
                # 内側のブロックは外側の分岐が成立した場合のみ評価される
                if self.test(statement.condition, environment, state):
                    self._exec(statement.body, environment, state)
                else:
                    self._exec(statement.orelse, environment, state)

    def test(self, condition: Condition, environment: Environment, state: dict[str, Any]) -> bool:
        """条件式を評価（副作用なし）"""
        if isinstance(condition, IsTrue):
            return bool(self._eval(condition.operand, environment, state))
        if isinstance(condition, Not):
            return not self.test(condition.condition, environment, state)
        if isinstance(condition, And):
            return all(self.test(c, environment, state) for c in condition.conditions)
        if isinstance(condition, Or):
            return any(self.test(c, environment, state) for c in condition.conditions)
        if isinstance(condition, Compare):
            left = self._eval(condition.left, environment, state)
            right = self._eval(condition.right, environment, state)
            return _COMPARE_FUNCS[condition.op](left, right)
        raise TypeError(f"Unsupported condition: {condition!r}")

    def _eval(self, expr: Expr, environment: Environment, state: dict[str, Any]) -> Any:
        if isinstance(expr, LiteralValue):
            return expr.value
        if isinstance(expr, TokenRef):
            return expr
        if isinstance(expr, ParamRef):
            return self._param_value(expr.name, environment)
        if isinstance(expr, VarRef):
            if expr.name not in self._variables:
                raise UnresolvedReference(expr.name, "variable is not declared")
            value = state.get(expr.name, _UNSET)
            if value is _UNSET:
                raise UnresolvedReference(expr.name, "variable is read before it is assigned")
            return value
        raise TypeError(f"Unsupported expression: {expr!r}")

    def _param_value(self, name: str, environment: Environment) -> Any:
        param = self.component.parameter(name)
        if param is None:
            raise UnresolvedReference(name, "parameter is not declared")
        if name in environment.parameters:
            value = environment.parameters[name]
        elif param.has_default:
            value = param.default
        elif param.type == "boolean":
            # 渡されなかった真偽値プロパティは偽として扱う
            return False
        else:
            raise UnresolvedReference(name, "parameter has no value in the environment and no default")
        check_value(value, param.type, name, param.enum_values)
        return value
