"""Built-in presets usable via `preset` without a config file."""

from reporoller.config.models import RollerPreset

BUILT_IN_PRESETS: dict[str, RollerPreset] = {
    "ts": RollerPreset(
        extensions=["ts", "tsx"],
        exclude=["**/*.test.ts", "**/*.spec.ts", "**/*.test.tsx", "**/*.spec.tsx"],
        with_tree=True,
        with_stats=True,
    ),
    "js": RollerPreset(
        extensions=["js", "jsx", "mjs", "cjs"],
        exclude=["**/*.test.js", "**/*.spec.js", "**/*.test.jsx", "**/*.spec.jsx"],
        with_tree=True,
        with_stats=True,
    ),
    "docs": RollerPreset(
        extensions=["md", "mdx", "txt"],
        with_tree=True,
        with_stats=False,
    ),
    "full": RollerPreset(
        include=["**/*"],
        with_tree=True,
        with_stats=True,
    ),
    # LLMs benefit from comments, so they are kept
    "llm": RollerPreset(
        extensions=["ts", "tsx", "js", "jsx", "py", "md", "yaml", "yml", "json"],
        max_file_size_bytes=2 * 1024 * 1024,
        strip_comments=False,
        with_tree=True,
        with_stats=True,
        sort="path",
    ),
    "minimal": RollerPreset(
        extensions=["ts", "tsx", "js", "jsx"],
        strip_comments=True,
        with_tree=False,
        with_stats=False,
        max_file_size_bytes=512 * 1024,
    ),
    "python": RollerPreset(
        extensions=["py", "pyi"],
        exclude=["**/*.pyc", "**/__pycache__/**", "**/test_*.py"],
        with_tree=True,
        with_stats=True,
    ),
    "go": RollerPreset(
        extensions=["go"],
        exclude=["**/*_test.go"],
        with_tree=True,
        with_stats=True,
    ),
    "rust": RollerPreset(
        extensions=["rs", "toml"],
        exclude=["**/target/**"],
        with_tree=True,
        with_stats=True,
    ),
}


def get_built_in_preset(name: str) -> RollerPreset | None:
    return BUILT_IN_PRESETS.get(name)


def list_built_in_presets() -> list[str]:
    return list(BUILT_IN_PRESETS)
