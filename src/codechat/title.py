"""Derive short human-readable session titles from code."""

import re

MAX_TITLE_LENGTH = 30
MAX_TITLE_WORDS = 4
MIN_WORD_LENGTH = 3

COMMENT_LEADERS = ("//", "/*", "*", "#", "<!--")

STOP_WORDS = frozenset({
    "import", "from", "const", "let", "var", "function", "class", "export",
    "default", "return", "if", "else", "for", "while", "do", "try", "catch",
    "async", "await",
})

_SYMBOLS = re.compile(r"""[{}();,\[\]"'`]""")


def _strip_comments(code: str) -> str:
    lines = (line.strip() for line in code.split("\n"))
    return " ".join(line for line in lines if line and not line.startswith(COMMENT_LEADERS))


def _meaningful_words(text: str) -> list[str]:
    words = _SYMBOLS.sub(" ", text).split()
    return [
        word for word in words
        if len(word) >= MIN_WORD_LENGTH and word.lower() not in STOP_WORDS
    ]


def _truncate(title: str) -> str:
    if len(title) > MAX_TITLE_LENGTH:
        return title[:MAX_TITLE_LENGTH - 3] + "..."
    return title


def derive_title(code: str, language: str) -> str:
    """Build a title of at most 30 characters from the first meaningful words of `code`.

    Comment lines, short tokens and common language keywords are skipped.
    Falls back to "New <language> Session" for blank code and
    "<Language> Code" when nothing meaningful is left; fallbacks are
    truncated like any other title.
    """
    if not code or not code.strip():
        return _truncate(f"New {language} Session")

    words = _meaningful_words(_strip_comments(code))[:MAX_TITLE_WORDS]
    if not words:
        return _truncate(f"{language[:1].upper()}{language[1:]} Code")

    return _truncate(" ".join(words))
