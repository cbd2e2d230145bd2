"""Pipeline: 複数バックエンドへの生成

1つのコンポーネントIRを、各バックエンドについて独立に検証・計画・生成する。
トークンカタログは実行開始時にスナップショットされ、全バックエンドで共有される。
あるバックエンドの失敗は他のバックエンドの生成を中断しない。
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path

from comptool.backends import emit_component
from comptool.core.base.errors import ComponentError
from comptool.core.base.ir import ComponentIR
from comptool.core.engine.loader import load_component
from comptool.core.engine.normalizer import normalize_ir
from comptool.core.engine.planner import plan_component
from comptool.core.engine.profile import BackendProfile
from comptool.core.engine.tokens import TokenCatalog
from comptool.core.engine.validate import check_ir

logger = logging.getLogger(__name__)


@dataclass
class GenerationResult:
    """1つの（コンポーネント, バックエンド）組の生成結果

    Attributes:
        component: コンポーネント名
        backend: バックエンド名
        files: (ファイル名, ソース) のリスト（失敗時は空）
        error: 失敗時のエラー
    """

    component: str
    backend: str
    files: list[tuple[str, str]] = field(default_factory=list)
    error: ComponentError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def generate(
    component: ComponentIR,
    profiles: Iterable[BackendProfile],
    catalog: TokenCatalog,
    max_workers: int | None = None,
) -> dict[str, GenerationResult]:
    """コンポーネントを全バックエンドについて生成

    Args:
        component: 正規化済みIR
        profiles: 生成対象のバックエンドプロファイル
        catalog: トークンカタログ
        max_workers: 並列数（2以上でスレッドプールを使用）

    Returns:
        バックエンド名 -> GenerationResult（profilesの順序）

    Raises:
        ValueError: 同じ名前のプロファイルが複数ある
    """
    profiles = _unique_profiles(profiles)
    snapshot = catalog.snapshot()

    if max_workers is not None and max_workers > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            results = list(executor.map(lambda profile: _generate_one(component, profile, snapshot), profiles))
    else:
        results = [_generate_one(component, profile, snapshot) for profile in profiles]

    return {result.backend: result for result in results}


def _unique_profiles(profiles: Iterable[BackendProfile]) -> list[BackendProfile]:
    profiles = list(profiles)
    names = [profile.name for profile in profiles]
    duplicates = sorted({name for name in names if names.count(name) > 1})
    if duplicates:
        raise ValueError(f"Duplicate backend profile name(s): {', '.join(duplicates)}")
    return profiles


def _generate_one(component: ComponentIR, profile: BackendProfile, catalog: TokenCatalog) -> GenerationResult:
    result = GenerationResult(component=component.meta.name, backend=profile.name)
    try:
        check_ir(component, catalog, profile)
        plan = plan_component(component)
        result.files = emit_component(component, plan, profile, catalog)
    except ComponentError as exc:
        logger.warning(f"Generation failed for {component.meta.name} on {profile.name}: {exc}")
        result.error = exc
        return result

    logger.debug(f"Generated {len(result.files)} file(s) for {component.meta.name} on {profile.name}")
    return result


def generate_files(
    spec_paths: Iterable[str | Path],
    profiles: Iterable[BackendProfile],
    catalog: TokenCatalog,
    max_workers: int | None = None,
) -> list[GenerationResult]:
    """仕様ファイル群を読み込み、全バックエンドについて生成

    読み込み・スキーマ検証に失敗したファイルは、全バックエンドの失敗として記録する。

    Args:
        spec_paths: コンポーネント仕様ファイルのパス
        profiles: 生成対象のバックエンドプロファイル
        catalog: トークンカタログ
        max_workers: 並列数

    Returns:
        GenerationResult のリスト（ファイル順・バックエンド順）

    Raises:
        ValueError: 同じ名前のプロファイルが複数ある
    """
    profiles = _unique_profiles(profiles)
    results: list[GenerationResult] = []
    for spec_path in spec_paths:
        try:
            component = normalize_ir(load_component(spec_path))
        except ComponentError as exc:
            logger.warning(f"Failed to load {spec_path}: {exc}")
            results.extend(
                GenerationResult(component=Path(spec_path).stem, backend=profile.name, error=exc)
                for profile in profiles
            )
            continue
        results.extend(generate(component, profiles, catalog, max_workers).values())
    return results


def write_results(results: Iterable[GenerationResult], output_dir: str | Path) -> list[Path]:
    """成功した生成結果を <output_dir>/<backend>/<filename> に書き込む

    Returns:
        書き込んだファイルのパス
    """
    output_dir = Path(output_dir)
    written: list[Path] = []
    for result in results:
        for filename, source in result.files:
            path = output_dir / result.backend / filename
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(source)
            written.append(path)
    return written
