"""comptool.core.base: IR（中間表現）とエラー定義

純粋なデータ定義（最下層）
"""

from .errors import (
    ComponentError,
    MalformedTree,
    TypeMismatch,
    UnknownToken,
    UnresolvedReference,
    UnsupportedPrimitive,
)
from .ir import (
    And,
    Assign,
    Assignment,
    Compare,
    ComponentIR,
    Environment,
    IfBlock,
    IsTrue,
    LiteralValue,
    MetaSpec,
    Not,
    Or,
    ParameterSpec,
    ParamRef,
    RenderNode,
    TokenRef,
    VariableSpec,
    VarRef,
)

__all__ = [
    # IR data classes
    "And",
    "Assign",
    "Assignment",
    "Compare",
    "ComponentIR",
    "Environment",
    "IfBlock",
    "IsTrue",
    "LiteralValue",
    "MetaSpec",
    "Not",
    "Or",
    "ParameterSpec",
    "ParamRef",
    "RenderNode",
    "TokenRef",
    "VariableSpec",
    "VarRef",
    # Errors
    "ComponentError",
    "MalformedTree",
    "TypeMismatch",
    "UnknownToken",
    "UnresolvedReference",
    "UnsupportedPrimitive",
]
