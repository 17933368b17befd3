"""
Rewrite the user-facing table alias to the session table name.

The SQL is split into tokens first so that only bare identifiers equal to the
alias are replaced. String literals, quoted identifiers, comments, longer
identifiers (data_2023, mydata) and qualified members (t.data) are left alone.
"""

import re
from typing import Iterator, Tuple

from config import TABLE_ALIAS

_TOKEN_RE = re.compile(
    r"""
    (?P<comment>--[^\n]*|/\*.*?(?:\*/|\Z))
    |(?P<string>'(?:[^']|'')*(?:'|\Z))
    |(?P<quoted>"(?:[^"]|"")*(?:"|\Z)|`[^`]*(?:`|\Z)|\[[^\]]*(?:\]|\Z))
    |(?P<word>[A-Za-z_][A-Za-z0-9_$]*)
    |(?P<space>\s+)
    |(?P<other>.)
    """,
    re.VERBOSE | re.DOTALL,
)


def tokenize(sql: str) -> Iterator[Tuple[str, str]]:
    """Yield (kind, text) pairs; joining the texts gives back the input."""
    for match in _TOKEN_RE.finditer(sql):
        yield match.lastgroup, match.group()


def rewrite_table_alias(sql: str, table_name: str, alias: str = TABLE_ALIAS) -> str:
    out = []
    prev_significant = None
    for kind, text in tokenize(sql):
        if kind == "word" and text == alias and prev_significant != ".":
            out.append(table_name)
        else:
            out.append(text)
        if kind not in ("space", "comment"):
            prev_significant = text
    return "".join(out)
