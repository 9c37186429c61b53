"""Static language tables: file extension lookup and download extensions."""

from .config import DEFAULT_LANGUAGE

# Extension (lower-case, no dot) -> editor language tag.
EXTENSION_LANGUAGES: dict[str, str] = {
    "js": "javascript",
    "jsx": "javascript",
    "ts": "typescript",
    "tsx": "typescript",
    "py": "python",
    "java": "java",
    "cpp": "cpp",
    "c": "c",
    "html": "html",
    "css": "css",
    "scss": "scss",
    "json": "json",
    "xml": "xml",
    "php": "php",
    "rb": "ruby",
    "go": "go",
    "rs": "rust",
    "kt": "kotlin",
    "swift": "swift",
    "dart": "dart",
    "vue": "vue",
    "svelte": "svelte",
}

# Language tag -> preferred file extension (first listed extension wins).
LANGUAGE_EXTENSIONS: dict[str, str] = {}
for _ext, _lang in EXTENSION_LANGUAGES.items():
    LANGUAGE_EXTENSIONS.setdefault(_lang, _ext)


def detect_language(file_name: str) -> str:
    """Infer a language tag from a file name's extension.

    Unknown or missing extensions fall back to the default language.
    """
    if "." not in file_name:
        return DEFAULT_LANGUAGE
    extension = file_name.rsplit(".", 1)[1].lower()
    return EXTENSION_LANGUAGES.get(extension, DEFAULT_LANGUAGE)


def extension_for(language: str) -> str:
    """Return the file extension used when downloading code in `language`."""
    return LANGUAGE_EXTENSIONS.get(language.lower(), language.lower())
