"""バックエンド層 - 計画→ソース生成

エミッション計画からバックエンドごとのソースを生成する純関数群。
各バックエンドはプロファイルで差異を表現し、相互に独立している。
"""

from comptool.core.engine.profile import BackendProfile

from . import react_native, sketch
from .jsx_component import emit_component

BACKENDS: dict[str, BackendProfile] = {
    react_native.PROFILE.name: react_native.PROFILE,
    sketch.PROFILE.name: sketch.PROFILE,
}


def get_profile(name: str) -> BackendProfile:
    """組み込みバックエンドのプロファイルを名前で取得

    Raises:
        KeyError: 未知のバックエンド名
    """
    if name not in BACKENDS:
        raise KeyError(f"Unknown backend: {name} (available: {', '.join(sorted(BACKENDS))})")
    return BACKENDS[name]


__all__ = ["BACKENDS", "emit_component", "get_profile", "react_native", "sketch"]
