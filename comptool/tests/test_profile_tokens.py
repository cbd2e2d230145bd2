"""バックエンドプロファイルとトークンカタログのテスト"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from comptool.backends import BACKENDS, get_profile, react_native, sketch
from comptool.core.base.errors import UnknownToken
from comptool.core.engine.profile import BackendProfile, load_profile
from comptool.core.engine.tokens import TokenCatalog, load_catalog, lookup, resolve_token

FIXTURES = Path(__file__).parent / "fixtures"


def test_builtin_profiles():
    """組み込みプロファイルの登録と取得"""
    assert sorted(BACKENDS) == ["react-native", "sketch"]
    assert get_profile("sketch") is sketch.PROFILE
    assert react_native.PROFILE.supports("input")
    assert not sketch.PROFILE.supports("input")

    with pytest.raises(KeyError):
        get_profile("flutter")


def test_token_access_mode_expansion():
    """モード文字列はカテゴリごとの既定のアクセス方法に展開される"""
    access = sketch.PROFILE.token_access

    assert access["color"].mode == "static-import"
    assert access["color"].import_line == 'import colors from "../colors"'
    assert access["text-style"].mode == "runtime-call"
    assert access["text-style"].framework_import == "TextStyles"
    assert access["text-style"].import_line == 'import textStyles from "../textStyles"'


def test_load_profile_yaml():
    """YAMLからプロファイルをロード"""
    profile = load_profile(FIXTURES / "plain_profile.yaml")

    assert profile.name == "plain"
    assert profile.style_table == "plain-object"
    assert profile.primitive_kinds == {"box": "View", "text": "Text"}
    assert profile.token_access["color"].expression == 'Colors.get("{name}")'
    assert profile.file_extension == ".js"


def test_load_profile_missing_file(tmp_path):
    """存在しないファイルはFileNotFoundError"""
    with pytest.raises(FileNotFoundError):
        load_profile(tmp_path / "missing.yaml")


def test_invalid_profile():
    """不正なプロファイルはValidationError"""
    with pytest.raises(ValidationError):
        BackendProfile.model_validate(
            {"name": "x", "module": "x", "primitiveKinds": {}, "styleTable": "css", "tokenAccess": "static-import"}
        )
    with pytest.raises(ValidationError):
        BackendProfile.model_validate(
            {"name": "x", "module": "x", "primitiveKinds": {}, "tokenAccess": {"spacing": "static-import"}}
        )


def test_explicit_token_access():
    """カテゴリごとのアクセス方法を明示できる"""
    profile = BackendProfile.model_validate(
        {
            "name": "themed",
            "module": "react-native",
            "primitiveKinds": {"box": "View"},
            "tokenAccess": {
                "color": {"mode": "runtime-call", "expression": "theme.color('{name}')"},
            },
        }
    )
    catalog = TokenCatalog(colors={"red500": "#F44336"}, textStyles={"headline": {"fontSize": 24}})

    assert lookup("red500", "color", profile, catalog) == "theme.color('red500')"
    with pytest.raises(UnknownToken):
        lookup("headline", "text-style", profile, catalog)


def test_lookup_per_backend(catalog):
    """同じトークンでもバックエンドごとにアクセス式が異なる"""
    assert lookup("blue500", "color", react_native.PROFILE, catalog) == "colors.blue500"
    assert lookup("headline", "text-style", react_native.PROFILE, catalog) == "textStyles.headline"
    assert lookup("headline", "text-style", sketch.PROFILE, catalog) == 'TextStyles.get("headline")'

    with pytest.raises(UnknownToken):
        lookup("magenta", "color", react_native.PROFILE, catalog)


def test_resolve_token(catalog):
    """トークンの具体値（テキストスタイルはコピー）"""
    assert resolve_token("red500", "color", catalog) == "#F44336"

    headline = resolve_token("headline", "text-style", catalog)
    headline["fontSize"] = 99
    assert catalog.text_styles["headline"]["fontSize"] == 24

    with pytest.raises(UnknownToken):
        resolve_token("title", "text-style", catalog)


def test_catalog_snapshot(catalog):
    """スナップショットは元のカタログと独立"""
    snapshot = catalog.snapshot()
    snapshot.colors["red500"] = "#000000"
    snapshot.text_styles["headline"]["fontSize"] = 1

    assert catalog.colors["red500"] == "#F44336"
    assert catalog.text_styles["headline"]["fontSize"] == 24
    assert catalog.has("red500", "color")
    assert not catalog.has("red500", "text-style")


def test_load_catalog_missing_file(tmp_path):
    """存在しないカタログはFileNotFoundError"""
    with pytest.raises(FileNotFoundError):
        load_catalog(tmp_path / "missing.yaml")
