"""バックエンドプロファイルのモデル定義とロード機能

バックエンドごとのプリミティブ・スタイルテーブル構文・条件分岐構文・
トークンアクセス方法を記述する静的な設定。
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

TokenAccessMode = Literal["static-import", "runtime-call"]

# モード文字列だけが指定された場合の既定値（カテゴリ -> モード -> 設定）
_DEFAULT_TOKEN_ACCESS: dict[str, dict[str, dict[str, str]]] = {
    "color": {
        "static-import": {
            "expression": "colors.{name}",
            "importLine": 'import colors from "../colors"',
        },
        "runtime-call": {
            "expression": 'Colors.get("{name}")',
            "frameworkImport": "Colors",
        },
    },
    "text-style": {
        "static-import": {
            "expression": "textStyles.{name}",
            "importLine": 'import textStyles from "../textStyles"',
        },
        "runtime-call": {
            "expression": 'TextStyles.get("{name}")',
            "frameworkImport": "TextStyles",
        },
    },
}


class TokenAccess(BaseModel):
    """トークンカテゴリ単位のアクセス方法"""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    mode: TokenAccessMode
    expression: str
    import_line: str = Field(default="", alias="importLine")
    framework_import: str = Field(default="", alias="frameworkImport")


class BackendProfile(BaseModel):
    """バックエンドプロファイル

    Attributes:
        name: バックエンド名（出力ディレクトリ名にも使用）
        module: プリミティブをインポートするモジュール
        primitive_kinds: IRノード種別 -> コンストラクタ名
        style_table: "stylesheet-create" | "plain-object"
        conditional_syntax: "if-chain" | "nested-if"
        token_access: トークンカテゴリ -> アクセス方法
        text_input_prop: inputノードのテキストを渡すprop名
        file_extension: 出力ファイルの拡張子
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: str
    module: str
    primitive_kinds: dict[str, str] = Field(alias="primitiveKinds")
    style_table: Literal["stylesheet-create", "plain-object"] = Field(
        default="stylesheet-create", alias="styleTable"
    )
    conditional_syntax: Literal["if-chain", "nested-if"] = Field(default="if-chain", alias="conditionalSyntax")
    token_access: dict[str, TokenAccess] = Field(alias="tokenAccess")
    text_input_prop: str = Field(default="value", alias="textInputProp")
    file_extension: str = Field(default=".js", alias="fileExtension")

    @field_validator("token_access", mode="before")
    @classmethod
    def _expand_token_access(cls, value: Any) -> Any:
        """モード文字列を全カテゴリ共通の設定に展開"""
        if isinstance(value, str):
            value = {category: value for category in _DEFAULT_TOKEN_ACCESS}
        if not isinstance(value, dict):
            return value

        expanded: dict[str, Any] = {}
        for category, access in value.items():
            if isinstance(access, str):
                defaults = _DEFAULT_TOKEN_ACCESS.get(category, {}).get(access)
                if defaults is None:
                    raise ValueError(f"no default token access for category '{category}' in mode '{access}'")
                access = {"mode": access, **defaults}
            expanded[category] = access
        return expanded

    def supports(self, kind: str) -> bool:
        return kind in self.primitive_kinds


def load_profile(profile_path: str | Path) -> BackendProfile:
    """プロファイルYAMLをロードして検証

    Args:
        profile_path: プロファイルYAMLのパス

    Returns:
        BackendProfile: 検証済みプロファイル

    Raises:
        FileNotFoundError: ファイルが存在しない
        yaml.YAMLError: YAML形式エラー
        pydantic.ValidationError: Pydantic検証エラー
    """
    profile_path_obj = Path(profile_path)

    if not profile_path_obj.exists():
        raise FileNotFoundError(f"Profile file not found: {profile_path}")

    with open(profile_path_obj) as f:
        data = yaml.safe_load(f)

    return BackendProfile.model_validate(data)
