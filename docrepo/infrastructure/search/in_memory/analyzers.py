import re
from typing import Callable

Analyzer = Callable[[str], list[str]]

_WORD_PATTERN = re.compile(r"[^\W_]+")
_LETTER_PATTERN = re.compile(r"[^\W\d_]+")


def _is_cjk(char: str) -> bool:
    code = ord(char)
    return (
        0x4E00 <= code <= 0x9FFF
        or 0x3400 <= code <= 0x4DBF
        or 0x3040 <= code <= 0x30FF
        or 0xAC00 <= code <= 0xD7AF
        or 0xF900 <= code <= 0xFAFF
    )


def standard_analyzer(text: str) -> list[str]:
    """Lowercased word tokens; CJK characters become one token each."""
    tokens = []
    for match in _WORD_PATTERN.finditer(text.lower()):
        run = []
        for char in match.group():
            if _is_cjk(char):
                if run:
                    tokens.append("".join(run))
                    run = []
                tokens.append(char)
            else:
                run.append(char)
        if run:
            tokens.append("".join(run))
    return tokens


def simple_analyzer(text: str) -> list[str]:
    return _LETTER_PATTERN.findall(text.lower())


def whitespace_analyzer(text: str) -> list[str]:
    return text.split()


def keyword_analyzer(text: str) -> list[str]:
    return [text]


DEFAULT_ANALYZERS: dict[str, Analyzer] = {
    "standard": standard_analyzer,
    "simple": simple_analyzer,
    "whitespace": whitespace_analyzer,
    "keyword": keyword_analyzer,
}
