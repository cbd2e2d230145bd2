"""React Nativeバックエンドのプロファイル

View/Text/Pressable/TextInput と StyleSheet.create を使い、
色・テキストスタイルは ../colors・../textStyles から静的にインポートする。
"""

from comptool.core.engine.profile import BackendProfile

PROFILE = BackendProfile(
    name="react-native",
    module="react-native",
    primitive_kinds={
        "box": "View",
        "text": "Text",
        "interactive": "Pressable",
        "input": "TextInput",
    },
    style_table="stylesheet-create",
    conditional_syntax="if-chain",
    token_access="static-import",
)
