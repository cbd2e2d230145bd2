"""テスト共通のフィクスチャ"""

from pathlib import Path

import pytest

from comptool.core.base.ir import ComponentIR
from comptool.core.engine.loader import load_component
from comptool.core.engine.normalizer import normalize_ir
from comptool.core.engine.tokens import TokenCatalog, load_catalog

FIXTURES = Path(__file__).parent / "fixtures"


def load_normalized(name: str) -> ComponentIR:
    """フィクスチャの仕様をロードして正規化"""
    return normalize_ir(load_component(FIXTURES / f"{name}.yaml"))


@pytest.fixture
def catalog() -> TokenCatalog:
    return load_catalog(FIXTURES / "tokens.yaml")


@pytest.fixture
def load_fixture():
    """フィクスチャ名から正規化済みIRを返す関数"""
    return load_normalized
