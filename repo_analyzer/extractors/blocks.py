"""
Brace-balanced block extraction and signature parsing helpers.

These helpers understand just enough of C-family syntax (brackets, string
literals, comments) to bound bodies and split parameter lists. Every scan
has a ceiling so malformed input costs at most linear time.
"""

from __future__ import annotations

import re
from bisect import bisect_right

from repo_analyzer.models import ParameterRecord, PropertyRecord

BLOCK_FALLBACK_LENGTH = 200
MAX_BLOCK_SCAN = 2_000_000
MAX_SIGNATURE_SCAN = 5000

BRACE_PATTERN = re.compile(r"[{}]")

PAIRS = {"(": ")", "[": "]", "{": "}"}
OPENERS = "([{<"
CLOSERS = ")]}"
QUOTES = "'\"`"

# Keywords that look like calls: if (...), typeof(...), etc.
CALL_KEYWORDS = frozenset({
    "if", "for", "while", "switch", "catch", "function", "return", "typeof",
    "await", "new", "super", "import", "void", "delete", "in", "of", "do",
    "else", "yield", "with", "case", "throw", "instanceof", "constructor",
})

CALL_PATTERN = re.compile(r"(?<![\w$])([A-Za-z_$][\w$]*)\s*\(")

IMPORT_PATTERNS = (
    re.compile(r"^\s*import\s+(?:type\s+)?(?:[\w$*{}\s,]+?\s+from\s+)?['\"]([^'\"\n]+)['\"]", re.MULTILINE),
    re.compile(r"^\s*export\s+(?:type\s+)?[\w$*{}\s,]+?\s+from\s+['\"]([^'\"\n]+)['\"]", re.MULTILINE),
    re.compile(r"\brequire\(\s*['\"]([^'\"\n]+)['\"]\s*\)"),
    re.compile(r"\bimport\(\s*['\"]([^'\"\n]+)['\"]\s*\)"),
)

PARAMETER_MODIFIERS = re.compile(
    r"^(?:@[\w$.]+(?:\([^)]*\))?\s*)*(?:(?:public|private|protected|readonly|override)\s+)*"
)

INTERFACE_MEMBER = re.compile(
    r"(?:readonly\s+)?(?P<name>[A-Za-z_$][\w$]*|'[^']+'|\"[^\"]+\")(?P<optional>\?)?\s*:\s*(?P<type>.+)",
    re.DOTALL,
)

CLASS_PROPERTY = re.compile(
    r"(?:@[\w$.]+(?:\([^)]*\))?\s+)*"
    r"(?P<modifiers>(?:(?:public|private|protected|static|readonly|declare|override|abstract|accessor)\s+)*)"
    r"(?P<name>#?[A-Za-z_$][\w$]*)(?P<marker>[?!])?\s*"
    r"(?::\s*(?P<type>[^=]+?))?\s*(?:=\s*(?P<default>.+))?",
    re.DOTALL,
)


class LineIndex:
    """Maps character offsets to 1-based line numbers in O(log n)."""

    def __init__(self, content: str) -> None:
        self._starts = [0]
        index = content.find("\n")
        while index != -1:
            self._starts.append(index + 1)
            index = content.find("\n", index + 1)

    def line_of(self, index: int) -> int:
        return bisect_right(self._starts, index)


def extract_block(
    content: str,
    start: int,
    search_from: int | None = None,
    fallback_length: int = BLOCK_FALLBACK_LENGTH,
    max_scan: int = MAX_BLOCK_SCAN,
) -> str:
    """
    Extract a brace-balanced block.

    Finds the first "{" at or after ``search_from`` (defaults to ``start``)
    and counts brace depth until it returns to zero.

    Args:
        content: Full file text.
        start: Offset where the returned snippet begins (usually a header).
        search_from: Offset where the search for the opening brace begins.
        fallback_length: Length of the slice returned when no brace exists.
        max_scan: Ceiling on characters scanned past the opening brace.

    Returns:
        ``content[start:end]`` where ``end`` follows the matching "}". When the
        braces never balance, the snippet stops at end of file or at the scan
        ceiling. When there is no "{" at all, a short fallback slice.
    """
    search_from = start if search_from is None else max(search_from, start)
    open_index = content.find("{", search_from)
    if open_index == -1:
        return content[start:start + fallback_length]

    depth = 1
    limit = min(len(content), open_index + 1 + max_scan)
    for match in BRACE_PATTERN.finditer(content, open_index + 1, limit):
        if match.group() == "{":
            depth += 1
        else:
            depth -= 1
            if depth == 0:
                return content[start:match.end()]
    return content[start:limit]


def read_balanced(content: str, open_index: int, max_scan: int = MAX_SIGNATURE_SCAN) -> int | None:
    """
    Find the bracket matching the one at ``open_index``.

    Returns:
        Index of the closing bracket, or None when it is not found within
        ``max_scan`` characters.
    """
    opener = content[open_index:open_index + 1]
    closer = PAIRS.get(opener)
    if closer is None:
        return None
    depth = 0
    quote = None
    end = min(len(content), open_index + max_scan)
    i = open_index
    while i < end:
        ch = content[i]
        if quote:
            if ch == "\\":
                i += 2
                continue
            if ch == quote:
                quote = None
        elif ch in QUOTES:
            quote = ch
        elif ch == opener:
            depth += 1
        elif ch == closer:
            depth -= 1
            if depth == 0:
                return i
        i += 1
    return None


def skip_whitespace(content: str, index: int) -> int:
    length = len(content)
    while index < length and content[index].isspace():
        index += 1
    return index


def read_return_type(content: str, index: int, max_scan: int = MAX_SIGNATURE_SCAN) -> tuple[str | None, int]:
    """
    Read a ``: Type`` annotation following a parameter list.

    Stops before the body brace, an arrow, or a statement end.

    Returns:
        (type text or None, offset just after the annotation)
    """
    index = skip_whitespace(content, index)
    if not content.startswith(":", index):
        return None, index

    start = index + 1
    depth = 0
    i = start
    end = min(len(content), start + max_scan)
    while i < end:
        ch = content[i]
        if depth == 0:
            if ch == "{" and content[start:i].strip():
                break
            if ch == ";" or content.startswith("=>", i):
                break
        if ch in OPENERS:
            depth += 1
        elif ch in CLOSERS:
            depth -= 1
        elif ch == ">" and content[i - 1] != "=":
            depth -= 1
        if depth < 0:
            break
        i += 1

    text = " ".join(content[start:i].split())
    return (text or None), i


def find_expression_end(content: str, index: int, max_scan: int = MAX_BLOCK_SCAN) -> int:
    """
    Find where an arrow function's expression body ends.

    The body runs to the first ";" or line break outside brackets, or to the
    bracket that closes an enclosing call.
    """
    depth = 0
    quote = None
    end = min(len(content), index + max_scan)
    i = index
    while i < end:
        ch = content[i]
        if quote:
            if ch == "\\":
                i += 2
                continue
            if ch == quote:
                quote = None
        elif ch in QUOTES:
            quote = ch
        elif ch in "([{":
            depth += 1
        elif ch in ")]}":
            depth -= 1
            if depth < 0:
                return i
        elif ch in ";\n" and depth == 0:
            return i
        i += 1
    return i


def split_top_level(text: str, separators: str = ",") -> list[str]:
    """
    Split text on separators that are not nested in brackets or strings.

    Comments are dropped from the returned chunks; blank chunks are skipped.
    """
    chunks: list[str] = []
    current: list[str] = []
    depth = 0
    quote = None
    i = 0
    length = len(text)
    while i < length:
        ch = text[i]
        if quote:
            current.append(ch)
            if ch == "\\" and i + 1 < length:
                current.append(text[i + 1])
                i += 2
                continue
            if ch == quote:
                quote = None
            i += 1
            continue
        if text.startswith("//", i):
            newline = text.find("\n", i)
            i = length if newline == -1 else newline
            continue
        if text.startswith("/*", i):
            close = text.find("*/", i + 2)
            i = length if close == -1 else close + 2
            continue
        if ch in QUOTES:
            quote = ch
        elif ch in OPENERS:
            depth += 1
        elif ch in CLOSERS:
            depth = max(depth - 1, 0)
        elif ch == ">" and i > 0 and text[i - 1] != "=":
            depth = max(depth - 1, 0)
        elif depth == 0 and ch in separators:
            chunks.append("".join(current))
            current = []
            i += 1
            continue
        current.append(ch)
        i += 1
    chunks.append("".join(current))
    return [chunk.strip() for chunk in chunks if chunk.strip()]


def find_top_level(text: str, char: str) -> int:
    """Index of the first ``char`` outside brackets and strings, or -1."""
    depth = 0
    quote = None
    for i, ch in enumerate(text):
        if quote:
            if ch == quote and text[i - 1] != "\\":
                quote = None
            continue
        if ch in QUOTES:
            quote = ch
        elif ch in "([{<":
            depth += 1
        elif ch in ")]}":
            depth -= 1
        elif ch == ">":
            if i > 0 and text[i - 1] == "=":
                continue
            depth -= 1
        elif ch == char and depth <= 0:
            if char == "=":
                prev_ch = text[i - 1] if i > 0 else ""
                next_ch = text[i + 1] if i + 1 < len(text) else ""
                if next_ch in ("=", ">") or prev_ch in ("=", "!", "<", ">"):
                    continue
            return i
    return -1


def parse_parameters(text: str | None) -> tuple[ParameterRecord, ...]:
    """
    Parse a parameter list ("a: string, b?: number, c = 5").

    Args:
        text: Text between the parentheses of a signature.

    Returns:
        Tuple of ParameterRecord, one per parameter that has a name.
    """
    if not text or not text.strip():
        return ()

    params: list[ParameterRecord] = []
    for chunk in split_top_level(text, ","):
        param = PARAMETER_MODIFIERS.sub("", " ".join(chunk.split()))
        if not param:
            continue

        colon = find_top_level(param, ":")
        equals = find_top_level(param, "=")
        if colon != -1 and (equals == -1 or colon < equals):
            name_part = param[:colon]
            type_text = param[colon + 1:equals] if equals != -1 else param[colon + 1:]
        else:
            name_part = param[:equals] if equals != -1 else param
            type_text = ""
        default = param[equals + 1:].strip() if equals != -1 else ""

        name_part = name_part.strip()
        name = name_part.rstrip("?").strip()
        if not name:
            continue
        params.append(ParameterRecord(
            name=name,
            type=type_text.strip() or None,
            is_optional=name_part.endswith("?") or bool(default),
            default_value=default or None,
        ))
    return tuple(params)


def parse_interface_members(body: str, limit: int | None = None) -> tuple[PropertyRecord, ...]:
    """Parse ``name?: Type`` members of an interface or object type body."""
    properties: list[PropertyRecord] = []
    for chunk in split_top_level(body, ";,\n"):
        match = INTERFACE_MEMBER.fullmatch(chunk)
        if not match:
            continue
        properties.append(PropertyRecord(
            name=match.group("name").strip("'\""),
            type=" ".join(match.group("type").split()),
            is_optional=bool(match.group("optional")),
        ))
        if limit and len(properties) >= limit:
            break
    return tuple(properties)


def parse_class_properties(body: str, limit: int | None = None) -> tuple[PropertyRecord, ...]:
    """Parse field declarations at the top level of a class body."""
    properties: list[PropertyRecord] = []
    for chunk in split_top_level(body, ";\n"):
        match = CLASS_PROPERTY.fullmatch(chunk)
        if not match:
            continue
        name = match.group("name")
        if name in CALL_KEYWORDS:
            continue
        modifiers = match.group("modifiers") or ""
        type_text = match.group("type")
        properties.append(PropertyRecord(
            name=name,
            type=" ".join(type_text.split()) if type_text else None,
            is_optional=match.group("marker") == "?",
            is_private="private" in modifiers or name.startswith("#"),
        ))
        if limit and len(properties) >= limit:
            break
    return tuple(properties)


def find_calls(code: str) -> tuple[str, ...]:
    """Names of called functions, in first-seen order, keywords excluded."""
    seen: dict[str, None] = {}
    for match in CALL_PATTERN.finditer(code):
        name = match.group(1)
        if name not in CALL_KEYWORDS:
            seen.setdefault(name, None)
    return tuple(seen)


def find_imports(content: str) -> tuple[str, ...]:
    """Module specifiers imported or required by a file, in first-seen order."""
    found: list[tuple[int, str]] = []
    for pattern in IMPORT_PATTERNS:
        for match in pattern.finditer(content):
            found.append((match.start(), match.group(1)))
    seen: dict[str, None] = {}
    for _, module in sorted(found):
        seen.setdefault(module, None)
    return tuple(seen)


def read_type_definition(content: str, index: int, max_length: int = 2000) -> int:
    """
    Find the end of a type alias right-hand side starting at ``index``.

    The definition ends at ";" outside brackets, or at a line break when the
    next line does not continue a union or intersection.
    """
    depth = 0
    i = index
    end = min(len(content), index + max_length)
    while i < end:
        ch = content[i]
        if ch in OPENERS:
            depth += 1
        elif ch in CLOSERS:
            depth -= 1
            if depth < 0:
                return i
        elif ch == ">" and content[i - 1] != "=":
            depth -= 1
        elif ch == ";" and depth <= 0:
            return i
        elif ch == "\n" and depth <= 0:
            so_far = content[index:i].strip()
            if so_far and not so_far.endswith(("=", "|", "&", ",", "?", ":")):
                following = content[i + 1:i + 200].lstrip()
                if not following.startswith(("|", "&", "?", ":", ".")):
                    return i
        i += 1
    return i
