"""
Language Utilities - Nhận diện ngôn ngữ cho code fence trong prompt

Mapping extension -> language tag dùng trong header của từng file:
    File: src/app.py
    ```python

Tag này là một phần của text được đếm token, nên bảng phải ổn định:
estimator và prompt builder dùng chung một nguồn.
"""

from typing import Dict

# Language tag mặc định khi extension không có trong bảng
DEFAULT_LANGUAGE = "text"

# Extension (lowercase, có dấu chấm) -> language tag
EXTENSION_LANGUAGE_MAP: Dict[str, str] = {
    # .NET
    ".cs": "csharp",
    ".vb": "vb",
    ".fs": "fsharp",
    ".xaml": "xml",
    ".csproj": "xml",
    ".vbproj": "xml",
    ".fsproj": "xml",
    ".nuspec": "xml",
    ".axaml": "xml",
    ".config": "xml",
    ".aspx": "aspx",
    ".asp": "asp",
    ".cshtml": "cshtml",
    # Web
    ".html": "html",
    ".htm": "html",
    ".css": "css",
    ".js": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".jsx": "jsx",
    ".ts": "typescript",
    ".tsx": "tsx",
    ".vue": "vue",
    ".svelte": "svelte",
    ".scss": "scss",
    ".sass": "sass",
    ".less": "less",
    # JVM
    ".java": "java",
    ".kt": "kotlin",
    ".scala": "scala",
    ".groovy": "groovy",
    # Scripting
    ".py": "python",
    ".rb": "ruby",
    ".erb": "erb",
    ".php": "php",
    # Systems
    ".c": "c",
    ".cpp": "cpp",
    ".h": "cpp",
    ".go": "go",
    ".rs": "rust",
    # Mobile
    ".swift": "swift",
    ".m": "objectivec",
    ".mm": "objectivec",
    ".dart": "dart",
    ".plist": "xml",
    # Data / docs
    ".xml": "xml",
    ".json": "json",
    ".yaml": "yaml",
    ".yml": "yaml",
    ".md": "markdown",
    ".txt": "text",
    # Templates
    ".pug": "pug",
    ".jade": "jade",
    ".ejs": "ejs",
    ".haml": "haml",
    # Query languages
    ".sql": "sql",
    ".graphql": "graphql",
    ".gql": "graphql",
    # Shell
    ".sh": "bash",
    ".bash": "bash",
    ".bat": "batch",
    ".ps1": "powershell",
    # Misc languages
    ".pl": "perl",
    ".r": "r",
    ".lua": "lua",
    ".dockerfile": "dockerfile",
    ".ex": "elixir",
    ".exs": "elixir",
    ".jl": "julia",
    ".nim": "nim",
    ".hs": "haskell",
    ".clj": "clojure",
    ".elm": "elm",
    ".erl": "erlang",
    ".asm": "asm",
    ".s": "asm",
    ".wasm": "wasm",
    # Config
    ".ini": "ini",
    ".toml": "toml",
    ".tf": "hcl",
    ".tfvars": "hcl",
    ".proto": "proto",
}


def normalize_extension(extension: str) -> str:
    """
    Chuẩn hóa extension: lowercase, có dấu chấm ở đầu.

    "PY" -> ".py", ".Cs" -> ".cs", "" -> ""
    """
    ext = extension.strip().lower()
    if ext and not ext.startswith("."):
        ext = "." + ext
    return ext


def get_language_for_extension(extension: str) -> str:
    """
    Lấy language tag cho một extension.

    Args:
        extension: Extension của file (có hoặc không có dấu chấm, mọi case)

    Returns:
        Language tag, hoặc "text" nếu không biết
    """
    return EXTENSION_LANGUAGE_MAP.get(normalize_extension(extension), DEFAULT_LANGUAGE)

