from __future__ import annotations

from collections import Counter
from typing import Iterable

LANGUAGE_EXTENSIONS: dict[str, tuple[str, ...]] = {
    "javascript": (".js", ".jsx", ".mjs"),
    "typescript": (".ts", ".tsx"),
    "python": (".py", ".pyw"),
    "java": (".java",),
    "cpp": (".cpp", ".cc", ".cxx", ".hpp", ".h"),
    "csharp": (".cs",),
    "go": (".go",),
    "rust": (".rs",),
    "php": (".php",),
    "ruby": (".rb",),
    "swift": (".swift",),
    "kotlin": (".kt", ".kts"),
}

DEFAULT_LANGUAGE = "javascript"

# Paths that never carry interesting application code. Entries ending in "/" match
# whole directory segments, the rest match anywhere in the path.
IRRELEVANT_PATTERNS: tuple[str, ...] = (
    "node_modules",
    ".d.ts",
    "package-lock.json",
    "yarn.lock",
    "pnpm-lock.yaml",
    ".gitignore",
    "readme.md",
    ".env",
    ".ds_store",
    "thumbs.db",
    ".git/",
    "dist/",
    "build/",
    ".next/",
    "coverage/",
    ".vscode/",
    ".idea/",
    "vendor/",
    "target/",
    "bin/",
    "obj/",
    "__pycache__/",
    ".pytest_cache/",
    ".cache/",
    "bower_components/",
    "jspm_packages/",
    "web_modules/",
    ".parcel-cache/",
    ".nuxt/",
    ".output/",
    ".svelte-kit/",
    "out/",
    "public/",
    "static/",
    "assets/",
    "images/",
    "icons/",
    "fonts/",
    "docs/",
    "documentation/",
    "examples/",
    "samples/",
    "tests/",
    "test/",
    "spec/",
    "__tests__/",
    "__mocks__/",
    "fixtures/",
    "stories/",
    ".storybook/",
    "cypress/",
    "playwright/",
    "jest.config",
    "webpack.config",
    "rollup.config",
    "vite.config",
    "babel.config",
    "tsconfig",
    "eslint",
    "prettier",
    "tailwind.config",
    "postcss.config",
    "next.config",
    "nuxt.config",
    "angular.json",
    "package.json",
    "composer.json",
    "requirements.txt",
    "pipfile",
    "poetry.lock",
    "cargo.toml",
    "go.mod",
    "go.sum",
    "gemfile",
    "podfile",
    "pubspec.yaml",
    "mix.exs",
    "mix.lock",
)


def _extension(path: str) -> str:
    name = path.rsplit("/", 1)[-1].lower()
    if "." not in name:
        return ""
    return "." + name.rsplit(".", 1)[-1]


def detect_language(path: str) -> str | None:
    ext = _extension(path)
    if not ext:
        return None
    for language, extensions in LANGUAGE_EXTENSIONS.items():
        if ext in extensions:
            return language
    return None


def detect_primary_language(paths: Iterable[str]) -> str:
    counts = Counter(lang for lang in (detect_language(p) for p in paths) if lang)
    if not counts:
        return DEFAULT_LANGUAGE
    return counts.most_common(1)[0][0]


def is_source_path(path: str) -> bool:
    return detect_language(path) is not None


def is_irrelevant_path(path: str) -> bool:
    lowered = path.lower()
    anchored = "/" + lowered
    for pattern in IRRELEVANT_PATTERNS:
        if pattern.endswith("/"):
            if "/" + pattern in anchored:
                return True
        elif pattern in lowered:
            return True
    return False
