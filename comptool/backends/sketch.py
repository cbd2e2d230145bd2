"""Sketchプラグイン（react-sketchapp）バックエンドのプロファイル

テキスト入力のプリミティブを持たない。色は静的インポート、
テキストスタイルは TextStyles.get() で実行時に参照する
（トークンモジュール自体もインポートしておく）。
条件の論理積は入れ子のifに分割して出力する。
"""

from comptool.core.engine.profile import BackendProfile

PROFILE = BackendProfile(
    name="sketch",
    module="@mathieudutour/react-sketchapp",
    primitive_kinds={
        "box": "View",
        "text": "Text",
        "interactive": "View",
    },
    style_table="stylesheet-create",
    conditional_syntax="nested-if",
    token_access={
        "color": "static-import",
        "text-style": {
            "mode": "runtime-call",
            "expression": 'TextStyles.get("{name}")',
            "frameworkImport": "TextStyles",
            "importLine": 'import textStyles from "../textStyles"',
        },
    },
)
