"""
Escape sequence handling for RIO message text.

RIO producers write control characters in messages as two-character escapes
(a newline is written as a backslash followed by 'n'). Decoding turns those
back into the real characters for display; escapes that are not recognized are
left exactly as written, since log text often contains incidental backslashes
(Windows paths, regexes, etc.).
"""
from functools import partial
import re

ESCAPES = {
    "n": "\n",
    "t": "\t",
    '"': '"',
    "'": "'",
    "\\": "\\",
    "0": "\0",
    "r": "",
    "?": "?",
}
# \r decodes to nothing and \? to a plain "?", so encoding never produces either
ENCODINGS = {decoded: "\\" + code for code, decoded in ESCAPES.items() if code not in ("r", "?")}

# characters whose presence in a search string means it must be matched
# against decoded text, not the raw escaped text
ESCAPED_CHARACTERS = frozenset(ENCODINGS)

_escape_re = re.compile(r"\\(.)", flags=re.DOTALL)


def _decode_match(m: re.Match) -> str:
    return ESCAPES.get(m[1], m[0])


def decode_escapes(text: str) -> str:
    """
    Replace recognized escape sequences with the characters they stand for.
    An escaped carriage return is dropped, so CRLF-escaping producers decode
    to plain newlines. Unknown escapes and a trailing lone backslash are
    copied unchanged.
    """
    if "\\" not in text:
        return text
    return _escape_re.sub(_decode_match, text)


encode_escapes = partial(
    re.compile(f"[{re.escape(''.join(ENCODINGS))}]").sub,
    lambda m: ENCODINGS[m[0]],
)


def has_dangling_escape(text: str) -> bool:
    """
    Return True if text ends with a backslash that does not start a complete
    escape sequence (an odd number of trailing backslashes).
    """
    trailing_backslashes = len(text) - len(text.rstrip("\\"))
    return trailing_backslashes % 2 == 1
