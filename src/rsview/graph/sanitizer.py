"""
DOT Sanitizer.

Best-effort repair of Graphviz DOT text produced by an untrusted backend.
This is a line-oriented fixer, not a parser. It never blocks rendering: when
repair fails or the result does not open with a graph declaration, the
escape-decoded input is handed back instead.

Repair steps:
    1. Decode JSON unicode escapes and HTML entities (``=``, ``<``, ``>``,
       quotes).
    2. Escape raw quotes, newlines, tabs and stray backslashes inside
       ``label="..."``. A quoted string left open at the end of a line is
       joined with the following lines until it closes.
    3. Normalize spacing around ``->`` / ``--`` outside quoted strings and
       drop trailing separators on edge lines.
    4. Terminate statements with ``;``.

Blank lines and comments pass through untouched.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import List, Tuple

from ..core.result import Err, Ok, Result

logger = logging.getLogger(__name__)

_ESCAPES: Tuple[Tuple[str, str], ...] = (
    ("\\u003d", "="),
    ("\\u003e", ">"),
    ("\\u003c", "<"),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&#39;", "'"),
)

# Escape sequences Graphviz understands inside a quoted label.
_KEPT_ESCAPES = frozenset('"\\nlrtNGETHL')
_RAW_ESCAPES = {'"': '\\"', "\n": "\\n", "\r": "\\r", "\t": "\\t"}

# An escaped quote inside the label can never close it.
_LABEL_RE = re.compile(r'(\blabel\s*=\s*)"((?:\\.|[^\\])*?)"(?=\s*(?:[,;\]]|$))')
_QUOTED_SPLIT_RE = re.compile(r'("(?:[^"\\]|\\.)*")')
_EDGE_OP_RE = re.compile(r"\s*(->|--)\s*")
_TRAILING_SEP_RE = re.compile(r"[,;\s]+$")
_HEADER_RE = re.compile(r"^(?:strict\b|digraph\b|graph\b)", re.IGNORECASE)
_BARE_DECLARATION_RE = re.compile(
    r'^(?:strict\s+)?(?:di|sub)?graph(?:\s+(?:"(?:[^"\\]|\\.)*"|[^\s\[{;"]+))?$',
    re.IGNORECASE,
)
_TERMINATORS = (";", "{", "}", "[", ",")


@dataclass(frozen=True)
class RepairWarning:
    """
    Why repair was abandoned, plus the text to use instead.

    Attributes:
        text: Escape-decoded input, usable as-is.
        reason: Human readable cause.
    """
    text: str
    reason: str

    def __str__(self) -> str:
        return self.reason


@dataclass
class DotValidation:
    """Result of the lightweight header and brace check."""
    has_header: bool
    open_braces: int
    close_braces: int
    messages: List[str] = field(default_factory=list)

    @property
    def balanced(self) -> bool:
        return self.open_braces == self.close_braces

    @property
    def is_valid(self) -> bool:
        return self.has_header and self.balanced


def decode_escapes(text: str) -> str:
    for encoded, literal in _ESCAPES:
        text = text.replace(encoded, literal)
    return text


def escape_label(content: str) -> str:
    """
    Escape the inside of a quoted DOT label.

    Valid escape sequences are kept as they are, so escaping an already
    escaped label changes nothing.
    """
    out = []
    i = 0
    while i < len(content):
        ch = content[i]
        if ch == "\\":
            nxt = content[i + 1] if i + 1 < len(content) else ""
            if nxt and nxt in _KEPT_ESCAPES:
                out.append(ch + nxt)
                i += 2
                continue
            out.append("\\\\")
        else:
            out.append(_RAW_ESCAPES.get(ch, ch))
        i += 1
    return "".join(out)


def _split_quoted(text: str) -> List[str]:
    # Even indexes are unquoted text, odd indexes are complete quoted strings.
    return _QUOTED_SPLIT_RE.split(text)


def _unquoted(text: str) -> str:
    return "".join(_split_quoted(text)[0::2])


def has_open_quote(text: str) -> bool:
    """True when ``text`` ends inside a double-quoted string."""
    inside = False
    escaped = False
    for ch in text:
        if escaped:
            escaped = False
        elif ch == "\\" and inside:
            escaped = True
        elif ch == '"':
            inside = not inside
    return inside


def has_edge_operator(line: str) -> bool:
    bare = _unquoted(line)
    return "->" in bare or "--" in bare


def count_braces(text: str) -> Tuple[int, int]:
    bare = _unquoted(text)
    return bare.count("{"), bare.count("}")


def _space_edge_operators(line: str) -> str:
    parts = _split_quoted(line)
    for i in range(0, len(parts), 2):
        parts[i] = _EDGE_OP_RE.sub(r" \1 ", parts[i])
    return "".join(parts).strip()


def _strip_trailing_separators(line: str) -> str:
    bare = _unquoted(line)
    if bare.count("[") > bare.count("]"):
        # attribute list continues on the next line
        return line
    return _TRAILING_SEP_RE.sub("", line)


def _is_comment(stripped: str) -> bool:
    return stripped.startswith(("//", "#", "/*"))


class DotSanitizer:
    """
    Repairs DOT text line by line.

    Example:
        >>> DotSanitizer().sanitize('digraph G {\\n a->b\\n}').unwrap()
        'digraph G {\\n a -> b;\\n}'
    """

    def sanitize(self, text: str) -> Result[str, RepairWarning]:
        """
        Repair ``text``.

        Returns:
            Ok(repaired text), or Err(RepairWarning) whose ``text`` is the
            escape-decoded input to render instead.
        """
        decoded = decode_escapes(text)
        try:
            repaired = self._repair(decoded)
        except Exception as e:
            logger.warning(f"DOT repair failed, using decoded input: {e}")
            return Err(RepairWarning(decoded, f"repair failed: {e}"))

        check = self.validate(repaired)
        if not check.has_header:
            logger.warning("DOT text has no graph declaration, using decoded input")
            return Err(RepairWarning(decoded, "missing graph declaration"))
        return Ok(repaired)

    def repair(self, text: str) -> str:
        """Sanitize and return whichever text should be rendered."""
        outcome = self.sanitize(text)
        if outcome.is_ok():
            return outcome.value
        return outcome.unwrap_err().text

    def validate(self, text: str) -> DotValidation:
        """
        Check for a leading graph declaration and balanced braces.

        A brace mismatch is only logged; Graphviz gets to reject it.
        """
        first = next(
            (
                line.strip()
                for line in text.splitlines()
                if line.strip() and not _is_comment(line.strip())
            ),
            "",
        )
        opened, closed = count_braces(self._strip_comments(text))
        check = DotValidation(
            has_header=bool(_HEADER_RE.match(first)),
            open_braces=opened,
            close_braces=closed,
        )
        if not check.has_header:
            check.messages.append("DOT must start with 'graph', 'digraph' or 'strict'")
        if not check.balanced:
            message = f"Unbalanced braces: {opened} '{{' vs {closed} '}}'"
            check.messages.append(message)
            logger.warning(message)
        return check

    def _repair(self, text: str) -> str:
        out = []
        in_block_comment = False
        # physical lines of a quoted string still waiting for its closing quote
        pending: List[str] = []
        for line in text.split("\n"):
            if pending:
                pending.append(line)
                joined = "\n".join(pending)
                if not has_open_quote(joined):
                    out.append(self._repair_line(joined))
                    pending = []
                continue
            stripped = line.strip()
            if in_block_comment:
                out.append(line)
                if "*/" in stripped:
                    in_block_comment = False
                continue
            if not stripped or stripped.startswith(("//", "#")):
                out.append(line)
                continue
            if stripped.startswith("/*"):
                out.append(line)
                if "*/" not in stripped[2:]:
                    in_block_comment = True
                continue
            if has_open_quote(line):
                pending.append(line)
                continue
            out.append(self._repair_line(line))
        # quote never closed: repair the held lines one by one
        for line in pending:
            stripped = line.strip()
            out.append(line if not stripped or _is_comment(stripped) else self._repair_line(line))
        return "\n".join(out)

    def _repair_line(self, line: str) -> str:
        indent = line[: len(line) - len(line.lstrip())]
        body = line.strip()

        body = _LABEL_RE.sub(lambda m: f'{m.group(1)}"{escape_label(m.group(2))}"', body)

        if has_edge_operator(body):
            body = _strip_trailing_separators(body)
            body = _space_edge_operators(body)

        if not body.endswith(_TERMINATORS) and not _BARE_DECLARATION_RE.match(body):
            body += ";"
        return indent + body

    @staticmethod
    def _strip_comments(text: str) -> str:
        kept = []
        in_block_comment = False
        for line in text.splitlines():
            stripped = line.strip()
            if in_block_comment:
                in_block_comment = "*/" not in stripped
                continue
            if stripped.startswith("/*"):
                in_block_comment = "*/" not in stripped[2:]
                continue
            if stripped.startswith(("//", "#")):
                continue
            kept.append(line)
        return "\n".join(kept)
