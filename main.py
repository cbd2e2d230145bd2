#!/usr/bin/env python
"""
Comptool CLI - Multi-target UI component code generator

Usage:
    python main.py validate <spec_file> [--catalog FILE] [--backend NAME]
    python main.py gen <spec_file>... --catalog FILE [--output-dir DIR] [--backend NAME] [--profile FILE]
    python main.py resolve <spec_file> --catalog FILE [--params JSON] [--states JSON]
    python main.py version
"""

import json
import logging
import sys
from pathlib import Path
from typing import Any

import fire

from comptool.backends import BACKENDS, get_profile
from comptool.core.base.ir import ComponentIR, Environment
from comptool.core.engine.loader import load_component
from comptool.core.engine.normalizer import normalize_ir
from comptool.core.engine.pipeline import generate_files, write_results
from comptool.core.engine.profile import BackendProfile, load_profile
from comptool.core.engine.style_resolver import resolve_tree
from comptool.core.engine.tokens import TokenCatalog, load_catalog
from comptool.core.engine.validate import format_errors, validate_ir

__version__ = "0.1.0"


class ComptoolCLI:
    """Comptool - Multi-target UI component code generator CLI"""

    def validate(
        self, spec_file: str, catalog: str | None = None, backend: str | None = None, debug: bool = False
    ) -> None:
        """Validate a component document.

        Args:
            spec_file: Path to component YAML/JSON file
            catalog: Path to token catalog YAML (enables token checks)
            backend: Backend name (enables primitive checks)
            debug: Enable debug output
        """
        self._setup_logging(debug)
        spec_path = self._require_file(spec_file, "Spec file")

        try:
            component = self._load_and_normalize(spec_path)
            token_catalog = load_catalog(catalog) if catalog else None
            profile = get_profile(backend) if backend else None

            print("🔍 Validating IR...")
            errors = validate_ir(component, token_catalog, profile)
            if errors:
                print(f"\n❌ Validation failed with {len(errors)} error(s):")
                print(format_errors(errors))
                sys.exit(1)

            print("✅ Validation passed")

        except Exception as e:
            self._fail(e, debug)

    def gen(
        self,
        *spec_files: str,
        catalog: str,
        output_dir: str = "generated",
        backend: str | None = None,
        profile: str | None = None,
        workers: int = 1,
        debug: bool = False,
    ) -> None:
        """Generate component source for every backend.

        Args:
            spec_files: Paths to component YAML/JSON files
            catalog: Path to token catalog YAML
            output_dir: Output directory (files go to <output_dir>/<backend>/<category>/<Name>.js)
            backend: Generate only this built-in backend (default: all)
            profile: Path to an extra backend profile YAML
            workers: Number of backends generated in parallel
            debug: Enable debug output
        """
        self._setup_logging(debug)
        if not spec_files:
            print("❌ Error: No spec files given")
            sys.exit(1)
        spec_paths = [self._require_file(spec_file, "Spec file") for spec_file in spec_files]
        catalog_path = self._require_file(catalog, "Token catalog")

        try:
            print(f"📖 Loading token catalog: {catalog_path}")
            token_catalog = load_catalog(catalog_path)
            print(f"✅ Loaded {len(token_catalog.colors)} colors, {len(token_catalog.text_styles)} text styles")

            profiles = self._select_profiles(backend, profile)
            print(f"🎯 Backends: {', '.join(p.name for p in profiles)}")

            print("🔨 Generating components...")
            results = generate_files(spec_paths, profiles, token_catalog, max_workers=workers)

            out_path = Path(output_dir)
            written = write_results(results, out_path)
            for path in written:
                print(f"  ✅ Generated: {path}")

            failures = [result for result in results if not result.ok]
            for result in failures:
                print(f"  ❌ {result.component} ({result.backend}): {result.error}")

            if failures:
                print(f"\n⚠️  Generation finished with {len(failures)} failure(s)")
                sys.exit(1)

            print("\n✅ Code generation complete!")
            print(f"   Generated {len(written)} file(s) in: {out_path}")

        except Exception as e:
            self._fail(e, debug)

    def resolve(
        self,
        spec_file: str,
        catalog: str,
        params: Any = None,
        states: Any = None,
        backend: str | None = None,
        debug: bool = False,
    ) -> None:
        """Print the resolved style of every node for one environment.

        Args:
            spec_file: Path to component YAML/JSON file
            catalog: Path to token catalog YAML
            params: Parameter values as a JSON object
            states: Interaction states as a JSON object (e.g. {"Inner.pressed": true})
            backend: Also check that tokens are reachable on this backend
            debug: Enable debug output
        """
        self._setup_logging(debug)
        spec_path = self._require_file(spec_file, "Spec file")

        try:
            component = self._load_and_normalize(spec_path)
            token_catalog = load_catalog(catalog)
            environment = Environment(parameters=_parse_mapping(params), states=_parse_mapping(states))
            profile = get_profile(backend) if backend else None

            resolved = resolve_tree(component, environment, token_catalog, profile)
            print(json.dumps(resolved, indent=2, ensure_ascii=False))

        except Exception as e:
            self._fail(e, debug)

    def version(self) -> None:
        """Show version information."""
        print(f"comptool {__version__}")

    def _load_and_normalize(self, spec_path: Path) -> ComponentIR:
        """Load and normalize a component document."""
        print(f"📖 Loading spec: {spec_path}")
        component = load_component(spec_path)
        print(f"✅ Loaded {component.meta.name} ({len(component.parameters)} parameters)")

        print("🔄 Normalizing IR...")
        normalized = normalize_ir(component)
        print("✅ Normalization complete")
        return normalized

    def _select_profiles(self, backend: str | None, profile: str | None) -> list[BackendProfile]:
        profiles = [get_profile(backend)] if backend else list(BACKENDS.values())
        if profile:
            profiles.append(load_profile(profile))
        return profiles

    def _require_file(self, path: str, label: str) -> Path:
        file_path = Path(path)
        if not file_path.exists():
            print(f"❌ Error: {label} not found: {file_path}")
            sys.exit(1)
        return file_path

    def _setup_logging(self, debug: bool) -> None:
        logging.basicConfig(level=logging.DEBUG if debug else logging.WARNING, format="%(levelname)s %(name)s: %(message)s")

    def _fail(self, error: Exception, debug: bool) -> None:
        print(f"❌ Error: {error}")
        if debug:
            import traceback

            traceback.print_exc()
        sys.exit(1)


def _parse_mapping(value: Any) -> dict:
    """fireから渡された値（dictまたはJSON文字列）を辞書に変換"""
    if value is None:
        return {}
    if isinstance(value, dict):
        return value
    return json.loads(value)


def comptool_main() -> None:
    """Comptool CLI entry point."""
    fire.Fire(ComptoolCLI)


if __name__ == "__main__":
    comptool_main()
