"""Pipelineのテスト"""

import logging
from pathlib import Path

import pytest

from comptool.backends import BACKENDS, react_native, sketch
from comptool.core.base.errors import MalformedTree, UnsupportedPrimitive
from comptool.core.engine.pipeline import generate, generate_files, write_results

FIXTURES = Path(__file__).parent / "fixtures"
PROFILES = [react_native.PROFILE, sketch.PROFILE]


def test_generate_all_backends(load_fixture, catalog):
    """全バックエンドについて生成される"""
    results = generate(load_fixture("PressableRootView"), PROFILES, catalog)

    assert list(results) == ["react-native", "sketch"]
    for backend, result in results.items():
        assert result.ok
        assert result.backend == backend
        assert result.component == "PressableRootView"
        assert [filename for filename, _ in result.files] == ["interactivity/PressableRootView.js"]


def test_backend_failure_is_independent(load_fixture, catalog, caplog):
    """あるバックエンドの失敗は他のバックエンドの生成を中断しない"""
    with caplog.at_level(logging.WARNING):
        results = generate(load_fixture("SearchField"), PROFILES, catalog)

    assert results["react-native"].ok
    assert results["react-native"].files[0][0] == "input/SearchField.js"
    assert isinstance(results["sketch"].error, UnsupportedPrimitive)
    assert results["sketch"].files == []
    assert "SearchField" in caplog.text


def test_parallel_generation_matches_sequential(load_fixture, catalog):
    """並列生成の結果は逐次生成と同一"""
    component = load_fixture("PressableRootView")

    sequential = generate(component, PROFILES, catalog)
    parallel = generate(component, PROFILES, catalog, max_workers=2)

    assert list(parallel) == list(sequential)
    for backend in sequential:
        assert parallel[backend].files == sequential[backend].files


def test_generate_does_not_mutate_catalog(load_fixture, catalog):
    """生成はカタログのスナップショットを使い、元のカタログを変更しない"""
    before = catalog.model_dump()
    generate(load_fixture("TextStyleConditional"), PROFILES, catalog)

    assert catalog.model_dump() == before


def test_validation_runs_before_emission(catalog):
    """重複IDは生成前にMalformedTreeとして報告される"""
    results = generate_files([FIXTURES / "duplicate_id.yaml"], PROFILES, catalog)

    assert [result.backend for result in results] == ["react-native", "sketch"]
    for result in results:
        assert isinstance(result.error, MalformedTree)
        assert result.files == []


def test_generate_files_with_load_failure(tmp_path, catalog):
    """読み込みに失敗したファイルは全バックエンドの失敗として記録される"""
    broken = tmp_path / "Broken.yaml"
    broken.write_text("meta:\n  name: Broken\n")

    results = generate_files([broken, FIXTURES / "If.yaml"], PROFILES, catalog)

    assert [(result.component, result.ok) for result in results] == [
        ("Broken", False),
        ("Broken", False),
        ("If", True),
        ("If", True),
    ]
    assert isinstance(results[0].error, MalformedTree)


def test_write_results(tmp_path, catalog):
    """成功した結果のみ <output_dir>/<backend>/<category>/<Name>.js に書き込まれる"""
    results = generate_files(
        [FIXTURES / "If.yaml", FIXTURES / "SearchField.yaml"], list(BACKENDS.values()), catalog
    )
    written = write_results(results, tmp_path)

    assert sorted(path.relative_to(tmp_path).as_posix() for path in written) == [
        "react-native/input/SearchField.js",
        "react-native/logic/If.js",
        "sketch/logic/If.js",
    ]
    expected = next(result for result in results if result.component == "If" and result.backend == "sketch")
    assert (tmp_path / "sketch" / "logic" / "If.js").read_text() == expected.files[0][1]


def test_duplicate_profile_names_are_rejected(load_fixture, catalog):
    """同じ名前のプロファイルが複数あると結果が上書きされるため、生成前にエラー"""
    renamed = sketch.PROFILE.model_copy(update={"name": "react-native"})

    with pytest.raises(ValueError, match="react-native"):
        generate(load_fixture("If"), [react_native.PROFILE, renamed], catalog)
    with pytest.raises(ValueError, match="react-native"):
        generate_files([FIXTURES / "If.yaml"], [react_native.PROFILE, react_native.PROFILE], catalog)
