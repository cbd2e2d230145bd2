"""Loader: YAML→IR変換

コンポーネント仕様（YAML/JSON）を読み込み、スキーマ検証後にIRに変換する。
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema
import yaml

from comptool.core.base.errors import MalformedTree
from comptool.core.base.ir import (
    COMPARE_OPS,
    NODE_KINDS,
    PARAMETER_TYPES,
    VARIABLE_ROLES,
    And,
    Assign,
    Compare,
    ComponentIR,
    Condition,
    Expr,
    IfBlock,
    IsTrue,
    LiteralValue,
    MetaSpec,
    Not,
    Or,
    ParameterSpec,
    ParamRef,
    RenderNode,
    Statement,
    TokenRef,
    VariableSpec,
    VarRef,
)
from comptool.core.base.style_keys import TEXT_STYLE_KEY

TEXT_BINDING_KEY = "text"

COMPONENT_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "required": ["meta", "root"],
    "properties": {
        "meta": {
            "type": "object",
            "required": ["name"],
            "properties": {
                "name": {"type": "string", "pattern": "^[A-Za-z_][A-Za-z0-9_]*$"},
                "category": {"type": "string"},
                "description": {"type": "string"},
            },
        },
        "parameters": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["name", "type"],
                "properties": {
                    "name": {"type": "string"},
                    "type": {"enum": sorted(PARAMETER_TYPES)},
                    "default": {},
                    "values": {"type": "array", "items": {"type": "string"}},
                    "description": {"type": "string"},
                },
                "additionalProperties": False,
            },
        },
        "variables": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["name", "type"],
                "properties": {
                    "name": {"type": "string", "pattern": r"^[^.]+\.[^.]+$"},
                    "type": {"type": "string"},
                    "role": {"enum": list(VARIABLE_ROLES)},
                    "default": {},
                },
                "additionalProperties": False,
            },
        },
        "root": {"$ref": "#/definitions/node"},
        "logic": {"type": "array", "items": {"$ref": "#/definitions/statement"}},
    },
    "definitions": {
        "node": {
            "type": "object",
            "required": ["id"],
            "properties": {
                "id": {"type": "string"},
                "kind": {"enum": list(NODE_KINDS)},
                "style": {"type": "object"},
                "bindings": {"type": "array", "items": {"type": "string"}},
                "text": {"type": "string"},
                "events": {"type": "object", "additionalProperties": {"type": "string"}},
                "children": {"type": "array", "items": {"$ref": "#/definitions/node"}},
            },
            "additionalProperties": False,
        },
        "statement": {
            "oneOf": [
                {
                    "type": "object",
                    "required": ["assign"],
                    "properties": {
                        "assign": {
                            "type": "object",
                            "required": ["target", "value"],
                            "properties": {"target": {"type": "string"}, "value": {}},
                            "additionalProperties": False,
                        }
                    },
                    "additionalProperties": False,
                },
                {
                    "type": "object",
                    "required": ["if"],
                    "properties": {
                        "if": {},
                        "then": {"type": "array", "items": {"$ref": "#/definitions/statement"}},
                        "else": {"type": "array", "items": {"$ref": "#/definitions/statement"}},
                    },
                    "additionalProperties": False,
                },
            ]
        },
    },
}


def load_component(spec_path: str | Path) -> ComponentIR:
    """YAML/JSON仕様を読み込み、IRに変換

    Args:
        spec_path: 仕様ファイルのパス

    Returns:
        ComponentIR: 統合IR（未正規化）

    Raises:
        ValueError: 未対応のファイル形式
        MalformedTree: スキーマに適合しない
    """
    spec_path = Path(spec_path)
    with open(spec_path) as f:
        if spec_path.suffix in {".yaml", ".yml"}:
            data = yaml.safe_load(f)
        elif spec_path.suffix == ".json":
            data = json.load(f)
        else:
            raise ValueError(f"未対応のファイル形式: {spec_path.suffix}")

    return parse_component(data)


def parse_component(data: dict[str, Any]) -> ComponentIR:
    """辞書形式の仕様をIRに変換

    Raises:
        MalformedTree: スキーマに適合しない、または値・条件の記法が不正
    """
    try:
        jsonschema.validate(data, COMPONENT_SCHEMA)
    except jsonschema.ValidationError as exc:
        where = "/".join(str(part) for part in exc.absolute_path) or "<document>"
        raise MalformedTree(where, exc.message) from exc

    meta = _load_meta(data["meta"])
    return ComponentIR(
        meta=meta,
        root=_load_node(data["root"]),
        parameters=tuple(_load_parameter(p) for p in data.get("parameters", [])),
        variables=tuple(_load_variable(v) for v in data.get("variables", [])),
        logic=_load_statements(data.get("logic", []), "logic"),
    )


def _load_meta(meta_data: dict[str, Any]) -> MetaSpec:
    """メタデータを読み込み"""
    return MetaSpec(
        name=meta_data["name"],
        category=meta_data.get("category", ""),
        description=meta_data.get("description", ""),
    )


def _load_parameter(param_data: dict[str, Any]) -> ParameterSpec:
    """パラメータ定義をParameterSpecに変換"""
    return ParameterSpec(
        name=param_data["name"],
        type=param_data["type"],
        default=param_data.get("default"),
        enum_values=tuple(param_data.get("values", [])),
        description=param_data.get("description", ""),
    )


def _load_variable(var_data: dict[str, Any]) -> VariableSpec:
    """明示的な変数宣言をVariableSpecに変換"""
    default = var_data.get("default")
    return VariableSpec(
        name=var_data["name"],
        type=var_data["type"],
        role=var_data.get("role", "style"),
        default=_load_value(default, var_data["name"]) if default is not None else None,
    )


def _load_node(node_data: dict[str, Any]) -> RenderNode:
    """ノード定義をRenderNodeに変換（子ノードは再帰的に変換）"""
    node_id = node_data["id"]

    style: dict[str, Expr] = {}
    for key, value in node_data.get("style", {}).items():
        if key == TEXT_STYLE_KEY and isinstance(value, str):
            style[key] = TokenRef(value, "text-style")
        else:
            style[key] = _load_value(value, f"{node_id}.{key}")

    # "text" はテキスト内容のバインディング、それ以外はスタイルキー
    bound_keys = node_data.get("bindings", [])
    bindings = {key: f"{node_id}.{key}" for key in bound_keys if key != TEXT_BINDING_KEY}
    text_binding = f"{node_id}.{TEXT_BINDING_KEY}" if TEXT_BINDING_KEY in bound_keys else None

    return RenderNode(
        id=node_id,
        kind=node_data.get("kind", "box"),
        style=style,
        bindings=bindings,
        text=node_data.get("text"),
        text_binding=text_binding,
        events=dict(node_data.get("events", {})),
        children=tuple(_load_node(child) for child in node_data.get("children", [])),
    )


def _load_value(data: Any, where: str) -> Expr:
    """値の記法を値式に変換

    - スカラー: リテラル
    - {param: name}: パラメータ参照
    - {var: Node.prop}: 変数参照
    - {color: name}: 色トークン
    - {textStyle: name}: テキストスタイルトークン
    """
    if isinstance(data, dict):
        if len(data) != 1:
            raise MalformedTree(where, f"value must have exactly one key, got {sorted(data)}")
        ((key, name),) = data.items()
        if key == "param":
            return ParamRef(name)
        if key == "var":
            return VarRef(name)
        if key == "color":
            return TokenRef(name, "color")
        if key == TEXT_STYLE_KEY:
            return TokenRef(name, "text-style")
        raise MalformedTree(where, f"unknown value form '{key}'")
    if isinstance(data, list):
        raise MalformedTree(where, "list values are not supported")
    return LiteralValue(data)


def _load_condition(data: Any, where: str) -> Condition:
    """条件の記法を条件式に変換"""
    if isinstance(data, dict) and len(data) == 1:
        ((key, inner),) = data.items()
        if key == "not":
            return Not(_load_condition(inner, where))
        if key == "all":
            return And(tuple(_load_condition(c, where) for c in inner))
        if key == "any":
            return Or(tuple(_load_condition(c, where) for c in inner))
        if key == "compare":
            if not isinstance(inner, dict) or "left" not in inner or "right" not in inner:
                raise MalformedTree(where, "comparison needs 'left' and 'right'")
            op = inner.get("op", "==")
            if op not in COMPARE_OPS:
                raise MalformedTree(where, f"unknown comparison operator '{op}'")
            return Compare(_load_value(inner["left"], where), op, _load_value(inner["right"], where))
    return IsTrue(_load_value(data, where))


def _load_statements(statements_data: list[dict[str, Any]], where: str) -> tuple[Statement, ...]:
    """代入文・条件ブロックを宣言順に変換"""
    statements: list[Statement] = []
    for index, statement_data in enumerate(statements_data):
        location = f"{where}[{index}]"
        if "assign" in statement_data:
            assign = statement_data["assign"]
            statements.append(Assign(assign["target"], _load_value(assign["value"], assign["target"])))
        else:
            statements.append(
                IfBlock(
                    condition=_load_condition(statement_data["if"], location),
                    body=_load_statements(statement_data.get("then", []), f"{location}.then"),
                    orelse=_load_statements(statement_data.get("else", []), f"{location}.else"),
                )
            )
    return tuple(statements)
