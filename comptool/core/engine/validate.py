"""Validator: IR検証

正規化済みIRの意味論チェックを行う。エミッション開始前に実行され、
全ての問題をエラーのリストとして返す（check_ir は最初のエラーを送出する）。
主な検証項目:
1. レンダーツリーの形状（ID重複、単一ルート）
2. パラメータ・変数宣言の妥当性
3. ノードのバインディング・イベントの参照解決
4. ロジック（代入・条件）の参照解決と型整合性
5. 変数の既定値の存在と依存関係の非循環性
6. トークンの存在（カタログ指定時）
7. プリミティブの対応（プロファイル指定時）
"""

from __future__ import annotations

from collections.abc import Iterator

from comptool.core.base.errors import (
    ComponentError,
    MalformedTree,
    TypeMismatch,
    UnknownToken,
    UnresolvedReference,
    UnsupportedPrimitive,
)
from comptool.core.base.ir import (
    PARAMETER_TYPES,
    Assign,
    Compare,
    ComponentIR,
    Condition,
    Expr,
    IfBlock,
    IsTrue,
    LiteralValue,
    Not,
    Statement,
    TokenRef,
    VarRef,
)
from comptool.core.base.style_keys import style_key_type
from comptool.core.engine.logic import (
    check_acyclic,
    check_assignment_type,
    check_value,
    condition_refs,
    expr_type,
    is_assignable,
    iter_assigns,
    iter_conditions,
    literal_type,
)
from comptool.core.engine.profile import BackendProfile
from comptool.core.engine.render_tree import RenderTree
from comptool.core.engine.tokens import TokenCatalog, lookup

_TEXT_KINDS = ("text", "input")


def validate_ir(
    component: ComponentIR,
    catalog: TokenCatalog | None = None,
    profile: BackendProfile | None = None,
) -> list[ComponentError]:
    """IR全体の意味論チェック

    Args:
        component: 検証対象の正規化済みIR
        catalog: トークンカタログ（指定時のみトークンの存在を検証）
        profile: バックエンドプロファイル（指定時のみプリミティブ対応を検証）

    Returns:
        エラーのリスト（空の場合はエラーなし）
    """
    tree = RenderTree(component.root)
    shape_errors = tree.check_shape()
    if shape_errors:
        # ツリーが壊れている場合は後続の検証を行わない
        return list(shape_errors)

    errors: list[ComponentError] = []
    errors.extend(_validate_parameters(component))
    errors.extend(_validate_variables(component, tree))
    errors.extend(_validate_nodes(component, tree))
    errors.extend(_validate_logic(component))
    errors.extend(_validate_initialization(component))

    if not errors:
        try:
            check_acyclic(component)
        except MalformedTree as exc:
            errors.append(exc)

    if catalog is not None:
        errors.extend(_validate_tokens(component, tree, catalog, profile))
    if profile is not None:
        errors.extend(_validate_primitives(tree, profile))

    return errors


def check_ir(
    component: ComponentIR,
    catalog: TokenCatalog | None = None,
    profile: BackendProfile | None = None,
) -> None:
    """検証エラーがあれば最初のエラーを送出

    Raises:
        ComponentError: 検証エラー
    """
    errors = validate_ir(component, catalog, profile)
    if errors:
        raise errors[0]


def format_errors(errors: list[ComponentError]) -> str:
    """エラーを種別ごとにまとめて整形"""
    lines = []
    for kind in sorted({error.kind for error in errors}):
        lines.append(f"{kind}:")
        lines.extend(f"  - {error.target}: {error.message}" for error in errors if error.kind == kind)
    return "\n".join(lines)


def _validate_parameters(component: ComponentIR) -> list[ComponentError]:
    """パラメータ定義の妥当性チェック

    検証項目:
    - 重複名
    - 型名の妥当性
    - 既定値の型
    """
    errors: list[ComponentError] = []
    seen: set[str] = set()
    for param in component.parameters:
        if param.name in seen:
            errors.append(MalformedTree(param.name, "duplicate parameter name"))
        seen.add(param.name)
        if param.type not in PARAMETER_TYPES:
            errors.append(TypeMismatch(param.name, f"unknown parameter type '{param.type}'"))
            continue
        if param.has_default:
            try:
                check_value(param.default, param.type, param.name, param.enum_values)
            except TypeMismatch as exc:
                errors.append(exc)
    return errors


def _validate_variables(component: ComponentIR, tree: RenderTree) -> list[ComponentError]:
    """変数宣言の妥当性チェック

    検証項目:
    - 重複名
    - スコープとなるノードの存在
    - 既定値の参照解決と型
    """
    errors: list[ComponentError] = []
    node_ids = {node.id for node in tree}
    seen: set[str] = set()
    for variable in component.variables:
        if variable.name in seen:
            errors.append(MalformedTree(variable.name, "duplicate variable name"))
        seen.add(variable.name)
        if variable.node_id not in node_ids:
            errors.append(UnresolvedReference(variable.name, f"node '{variable.node_id}' does not exist"))
        if variable.default is None:
            continue
        if isinstance(variable.default, VarRef):
            errors.append(UnresolvedReference(variable.name, "default value may not reference another variable"))
            continue
        try:
            check_assignment_type(variable, variable.default, component)
        except ComponentError as exc:
            errors.append(exc)
    return errors


def _validate_nodes(component: ComponentIR, tree: RenderTree) -> list[ComponentError]:
    """ノード定義の妥当性チェック

    検証項目:
    - 静的スタイル値の形式と型
    - バインディング・テキストバインディングの変数参照
    - イベントのhandler型パラメータ参照
    - テキスト内容を持てるノード種別
    """
    errors: list[ComponentError] = []
    for node in tree:
        for key, value in node.style.items():
            where = f"{node.id}.{key}"
            if not isinstance(value, (LiteralValue, TokenRef)):
                errors.append(MalformedTree(where, "static style value must be a literal or a token"))
                continue
            source = value.category if isinstance(value, TokenRef) else literal_type(value.value)
            if not is_assignable(source, style_key_type(key)):
                errors.append(TypeMismatch(where, f"{source} value is not valid for {style_key_type(key)} style"))

        bound = list(node.bindings.values())
        if node.text_binding:
            bound.append(node.text_binding)
        for name in bound:
            if component.variable(name) is None:
                errors.append(UnresolvedReference(name, f"binding on node '{node.id}' is not a declared variable"))

        if (node.text is not None or node.text_binding) and node.kind not in _TEXT_KINDS:
            errors.append(MalformedTree(node.id, f"{node.kind} nodes cannot have text content"))

        for event, param_name in node.events.items():
            param = component.parameter(param_name)
            if param is None:
                errors.append(UnresolvedReference(param_name, f"event '{event}' on node '{node.id}'"))
            elif param.type != "handler":
                errors.append(TypeMismatch(param_name, f"event '{event}' needs a handler parameter, got {param.type}"))
    return errors


def _validate_logic(component: ComponentIR) -> list[ComponentError]:
    """ロジックの参照解決と型整合性チェック"""
    errors: list[ComponentError] = []
    for assign, guards in iter_assigns(component.logic):
        target = component.variable(assign.target)
        if target is None:
            errors.append(UnresolvedReference(assign.target, "assignment target is not declared"))
        else:
            try:
                check_assignment_type(target, assign.value, component)
            except ComponentError as exc:
                errors.append(exc)
    for condition in iter_conditions(component.logic):
        errors.extend(_validate_condition(condition, component))
    return errors


def _validate_condition(condition: Condition, component: ComponentIR) -> list[ComponentError]:
    errors: list[ComponentError] = []
    if isinstance(condition, IsTrue):
        try:
            operand_type = expr_type(condition.operand, component)
        except ComponentError as exc:
            return [exc]
        if operand_type not in (None, "boolean"):
            errors.append(TypeMismatch(_describe(condition.operand), f"condition operand is {operand_type}"))
    elif isinstance(condition, Compare):
        try:
            left = expr_type(condition.left, component)
            right = expr_type(condition.right, component)
        except ComponentError as exc:
            return [exc]
        if condition.op in ("==", "!=") and "null" in (left, right):
            return errors
        if not (is_assignable(left, right) or is_assignable(right, left)):
            errors.append(TypeMismatch(_describe(condition.left), f"cannot compare {left} with {right}"))
        elif condition.op not in ("==", "!=") and "number" not in (left, right):
            errors.append(TypeMismatch(_describe(condition.left), f"operator '{condition.op}' needs numbers"))
    else:
        inner = [condition.condition] if isinstance(condition, Not) else list(condition.conditions)
        for child in inner:
            errors.extend(_validate_condition(child, component))
    return errors


def _describe(expr: Expr) -> str:
    if isinstance(expr, LiteralValue):
        return repr(expr.value)
    return expr.name


def _validate_initialization(component: ComponentIR) -> list[ComponentError]:
    """変数の初期化順序チェック

    検証項目:
    - 既定値のない変数は、最初の代入がトップレベルの無条件代入であること
    - 変数を読み出す時点で、その変数が確実に代入済みであること
    """
    errors: list[ComponentError] = []
    declared = {v.name: v for v in component.variables}
    initialized = {v.name for v in component.variables if v.default is not None or v.role == "state"}

    first_assign: dict[str, tuple[Condition, ...]] = {}
    for assign, guards in iter_assigns(component.logic):
        first_assign.setdefault(assign.target, guards)
    for name, variable in declared.items():
        if name in initialized:
            continue
        if name not in first_assign:
            errors.append(MalformedTree(name, "variable has no default and is never assigned"))
        elif first_assign[name]:
            errors.append(MalformedTree(name, "variable has no unconditional default before its first assignment"))

    errors.extend(_check_reads(component.logic, set(initialized), declared))
    return errors


def _check_reads(statements: tuple[Statement, ...], assigned: set[str], declared: dict) -> list[ComponentError]:
    """代入前の読み出しを検出（分岐内の代入は分岐の外に持ち出さない）"""
    errors: list[ComponentError] = []
    for statement in statements:
        if isinstance(statement, Assign):
            errors.extend(_unassigned_reads([statement.value], assigned, declared))
            assigned.add(statement.target)
        else:
            errors.extend(_unassigned_reads(list(condition_refs(statement.condition)), assigned, declared))
            errors.extend(_check_reads(statement.body, set(assigned), declared))
            errors.extend(_check_reads(statement.orelse, set(assigned), declared))
    return errors


def _unassigned_reads(exprs: list[Expr], assigned: set[str], declared: dict) -> list[ComponentError]:
    return [
        UnresolvedReference(expr.name, "variable is read before it is assigned")
        for expr in exprs
        if isinstance(expr, VarRef) and expr.name in declared and expr.name not in assigned
    ]


def _iter_token_refs(component: ComponentIR, tree: RenderTree) -> Iterator[TokenRef]:
    for node in tree:
        yield from (value for value in node.style.values() if isinstance(value, TokenRef))
    for variable in component.variables:
        if isinstance(variable.default, TokenRef):
            yield variable.default
    for assign, _ in iter_assigns(component.logic):
        if isinstance(assign.value, TokenRef):
            yield assign.value
    for condition in iter_conditions(component.logic):
        yield from (ref for ref in condition_refs(condition) if isinstance(ref, TokenRef))


def _validate_tokens(
    component: ComponentIR, tree: RenderTree, catalog: TokenCatalog, profile: BackendProfile | None
) -> list[ComponentError]:
    """トークン参照の解決可能性チェック"""
    errors: list[ComponentError] = []
    reported: set[tuple[str, str]] = set()
    for ref in _iter_token_refs(component, tree):
        if (ref.name, ref.category) in reported:
            continue
        reported.add((ref.name, ref.category))
        if not catalog.has(ref.name, ref.category):
            errors.append(UnknownToken(ref.name, f"{ref.category} token '{ref.name}' is not in the catalog"))
        elif profile is not None:
            try:
                lookup(ref.name, ref.category, profile, catalog)
            except UnknownToken as exc:
                errors.append(exc)
    return errors


def _validate_primitives(tree: RenderTree, profile: BackendProfile) -> list[ComponentError]:
    """ノード種別がバックエンドで定義されているかチェック"""
    return [
        UnsupportedPrimitive(node.id, f"backend '{profile.name}' has no primitive for '{node.kind}' nodes")
        for node in tree
        if not profile.supports(node.kind)
    ]
