"""トークンカタログとバックエンド別のアクセス式解決

カタログは生成実行の開始時にスナップショットされ、
(名前, カテゴリ, バックエンド) に対して常に同じ結果を返す。
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field

from comptool.core.base.errors import UnknownToken
from comptool.core.engine.profile import BackendProfile


class TokenCatalog(BaseModel):
    """デザイントークンカタログ

    Attributes:
        colors: 色名 -> 色値
        text_styles: テキストスタイル名 -> スタイルプロパティ
    """

    model_config = ConfigDict(populate_by_name=True)

    colors: dict[str, str] = Field(default_factory=dict)
    text_styles: dict[str, dict[str, Any]] = Field(default_factory=dict, alias="textStyles")

    def snapshot(self) -> TokenCatalog:
        """1回の生成実行で使う不変コピーを返す"""
        return self.model_copy(deep=True)

    def entries(self, category: str) -> dict[str, Any]:
        if category == "color":
            return self.colors
        if category == "text-style":
            return self.text_styles
        raise ValueError(f"unknown token category: {category}")

    def has(self, name: str, category: str) -> bool:
        return name in self.entries(category)


def load_catalog(catalog_path: str | Path) -> TokenCatalog:
    """トークンカタログYAMLをロード

    Args:
        catalog_path: カタログYAMLのパス

    Returns:
        TokenCatalog: 検証済みカタログ

    Raises:
        FileNotFoundError: ファイルが存在しない
        pydantic.ValidationError: Pydantic検証エラー
    """
    catalog_path_obj = Path(catalog_path)

    if not catalog_path_obj.exists():
        raise FileNotFoundError(f"Token catalog not found: {catalog_path}")

    with open(catalog_path_obj) as f:
        data = yaml.safe_load(f) or {}

    return TokenCatalog.model_validate(data)


def resolve_token(name: str, category: str, catalog: TokenCatalog) -> Any:
    """トークンの具体値を返す

    Raises:
        UnknownToken: カタログに存在しない
    """
    entries = catalog.entries(category)
    if name not in entries:
        raise UnknownToken(name, f"{category} token '{name}' is not in the catalog")
    value = entries[name]
    # テキストスタイルは呼び出し側で展開されるためコピーを返す
    return dict(value) if isinstance(value, dict) else value


def lookup(name: str, category: str, profile: BackendProfile, catalog: TokenCatalog) -> str:
    """トークン参照をバックエンドのアクセス式に変換

    静的インポートに対応するバックエンドでは直接参照式（colors.blue500）、
    実行時参照のみのバックエンドでは呼び出し式（TextStyles.get("headline")）を返す。

    Args:
        name: トークン名
        category: "color" | "text-style"
        profile: バックエンドプロファイル
        catalog: トークンカタログ

    Returns:
        アクセス式

    Raises:
        UnknownToken: カタログに存在しない、またはプロファイルにアクセス方法がない
    """
    if not catalog.has(name, category):
        raise UnknownToken(name, f"{category} token '{name}' is not in the catalog")
    access = profile.token_access.get(category)
    if access is None:
        raise UnknownToken(name, f"backend '{profile.name}' has no access path for {category} tokens")
    return access.expression.format(name=name)
