"""中間表現（IR）データ構造定義

コンポーネント仕様→IR→各バックエンドの一貫性を保つための中間表現。
ロジック（パラメータ・変数・条件付き代入）とレンダーツリーから成る。
全てのIR要素はロード時に一度だけ構築され、以後は変更されない。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

PARAMETER_TYPES = frozenset(
    ["boolean", "enum", "string", "number", "color", "text-style", "handler"],
)
TOKEN_CATEGORIES = ("color", "text-style")
NODE_KINDS = ("box", "text", "interactive", "input")
VARIABLE_ROLES = ("style", "text", "state", "event")
COMPARE_OPS = ("==", "!=", "<", "<=", ">", ">=")

# interactiveノードが暗黙に持つ状態変数
INTERACTION_STATES = ("hovered", "pressed")


# ==================== 値式 ====================


@dataclass(frozen=True)
class LiteralValue:
    """リテラル値"""

    value: Any


@dataclass(frozen=True)
class ParamRef:
    """パラメータ参照"""

    name: str


@dataclass(frozen=True)
class VarRef:
    """変数参照（参照時点での現在値）"""

    name: str


@dataclass(frozen=True)
class TokenRef:
    """デザイントークン参照"""

    name: str
    category: str  # "color" | "text-style"


Expr = Union[LiteralValue, ParamRef, VarRef, TokenRef]


# ==================== 条件式 ====================


@dataclass(frozen=True)
class IsTrue:
    """値の真偽判定"""

    operand: Expr


@dataclass(frozen=True)
class Not:
    """否定"""

    condition: Condition


@dataclass(frozen=True)
class And:
    """論理積"""

    conditions: tuple[Condition, ...]


@dataclass(frozen=True)
class Or:
    """論理和"""

    conditions: tuple[Condition, ...]


@dataclass(frozen=True)
class Compare:
    """比較"""

    left: Expr
    op: str
    right: Expr


Condition = Union[IsTrue, Not, And, Or, Compare]


# ==================== 文 ====================


@dataclass(frozen=True)
class Assign:
    """変数への代入"""

    target: str
    value: Expr


@dataclass(frozen=True)
class IfBlock:
    """条件ブロック（else節は任意）"""

    condition: Condition
    body: tuple[Statement, ...] = ()
    orelse: tuple[Statement, ...] = ()


Statement = Union[Assign, IfBlock]


@dataclass(frozen=True)
class Assignment:
    """変数単位に平坦化した代入（conditionがNoneなら無条件）"""

    condition: Condition | None
    value: Expr


# ==================== 宣言 ====================


@dataclass(frozen=True)
class ParameterSpec:
    """コンポーネントパラメータ定義"""

    name: str
    type: str
    default: Any = None
    enum_values: tuple[str, ...] = ()
    description: str = ""

    @property
    def has_default(self) -> bool:
        return self.default is not None


@dataclass(frozen=True)
class VariableSpec:
    """ノードスコープの変数定義

    Attributes:
        name: "Node.property" 形式の変数名
        type: 宣言型
        role: "style" | "text" | "state" | "event"
        default: 無条件の初期値（Noneならロジック先頭の無条件代入が初期値）
    """

    name: str
    type: str
    role: str = "style"
    default: Expr | None = None

    @property
    def node_id(self) -> str:
        return self.name.split(".", 1)[0]

    @property
    def prop_name(self) -> str:
        return self.name.split(".", 1)[1]


@dataclass(frozen=True)
class RenderNode:
    """レンダーツリーのノード

    Attributes:
        id: ツリー内で一意な識別子
        kind: プリミティブ種別（"box", "text", "interactive", "input"）
        style: 静的スタイル（キー -> LiteralValue/TokenRef、順序付き）
        bindings: 動的スタイル（キー -> 変数名）
        text: 静的テキスト
        text_binding: テキスト内容にバインドされた変数名
        events: イベント（"onPress" など -> handler型パラメータ名）
        children: 子ノード
    """

    id: str
    kind: str = "box"
    style: dict[str, Expr] = field(default_factory=dict)
    bindings: dict[str, str] = field(default_factory=dict)
    text: str | None = None
    text_binding: str | None = None
    events: dict[str, str] = field(default_factory=dict)
    children: tuple[RenderNode, ...] = ()

    def event_variable(self, event: str) -> str:
        """イベントハンドラを保持する変数名"""
        return f"{self.id}.{event}"


@dataclass(frozen=True)
class MetaSpec:
    """メタデータ"""

    name: str
    category: str = ""
    description: str = ""


@dataclass(frozen=True)
class ComponentIR:
    """統合IR（中間表現）

    Loader→Normalizer→Validator→Planner→Backendの各段階で使用される。

    Attributes:
        meta: メタデータ
        root: レンダーツリーのルート
        parameters: パラメータ定義
        variables: 変数定義
        logic: 条件付き代入文（宣言順）
    """

    meta: MetaSpec
    root: RenderNode
    parameters: tuple[ParameterSpec, ...] = ()
    variables: tuple[VariableSpec, ...] = ()
    logic: tuple[Statement, ...] = ()

    def parameter(self, name: str) -> ParameterSpec | None:
        return next((p for p in self.parameters if p.name == name), None)

    def variable(self, name: str) -> VariableSpec | None:
        return next((v for v in self.variables if v.name == name), None)


@dataclass(frozen=True)
class Environment:
    """1回の評価で用いる具体値

    Attributes:
        parameters: パラメータ名 -> 値
        states: 状態変数名（"Inner.hovered" など） -> bool
    """

    parameters: dict[str, Any] = field(default_factory=dict)
    states: dict[str, bool] = field(default_factory=dict)
