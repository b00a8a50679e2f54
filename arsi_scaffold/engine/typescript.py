"""Best-effort TypeScript to JavaScript rewriting.

``strip_types`` removes the TypeScript-only syntax that shows up in the
template fragments: type-only imports and exports, ``interface`` blocks,
``type`` aliases, ``declare`` statements, parameter / variable / return
annotations, generic parameter lists, ``as`` casts, ``satisfies`` clauses,
``implements`` clauses and non-null assertions.

It is a syntactic pass over source text, not a compiler.  Strings and
comments are skipped, JSX is left alone, and anything it does not recognise
is passed through unchanged.
"""

from __future__ import annotations

import bisect
import re

# Keywords that may precede ``(`` without opening a parameter list.
_CONTROL_KEYWORDS = frozenset({
    "if", "for", "while", "switch", "with", "return", "typeof", "await",
    "new", "delete", "void", "throw", "case", "in", "of", "instanceof",
    "yield", "else", "do", "import", "super",
})

_OPENERS = "([{<"
_CLOSERS = ")]}>"

_CAST_TARGET = re.compile(
    r"(?:const|any|unknown|string|number|boolean|never|object|bigint|symbol|"
    r"undefined|null|keyof\b|typeof\b|readonly\b|[A-Z_$]|\{|\[|\()"
)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def strip_types(source: str) -> str:
    """Return *source* with TypeScript-only syntax removed."""
    text = source.replace("\r\n", "\n")
    text = _remove_type_imports(text)
    text = _remove_declarations(text)
    text = _strip_signatures(text)
    text = _strip_variable_annotations(text)
    text = _strip_satisfies(text)
    text = _strip_casts(text)
    text = _strip_generic_arguments(text)
    text = _strip_non_null_assertions(text)
    text = _strip_implements(text)
    return _tidy(text, source)


# ---------------------------------------------------------------------------
# Scanning helpers
# ---------------------------------------------------------------------------


def _skip_literal(text: str, i: int) -> int:
    """If a string, template literal or comment starts at *i*, return the index after it."""
    n = len(text)
    c = text[i]
    if c in "'\"":
        j = i + 1
        while j < n and text[j] != c and text[j] != "\n":
            if text[j] == "\\":
                j += 1
            j += 1
        return min(j + 1, n)
    if c == "`":
        j = i + 1
        while j < n and text[j] != "`":
            if text[j] == "\\":
                j += 1
            j += 1
        return min(j + 1, n)
    if text.startswith("//", i):
        j = text.find("\n", i)
        return n if j == -1 else j
    if text.startswith("/*", i):
        j = text.find("*/", i + 2)
        return n if j == -1 else j + 2
    return i


def _literal_spans(text: str) -> list[tuple[int, int]]:
    spans: list[tuple[int, int]] = []
    i, n = 0, len(text)
    while i < n:
        j = _skip_literal(text, i)
        if j != i:
            spans.append((i, j))
            i = j
        else:
            i += 1
    return spans


def _in_spans(spans: list[tuple[int, int]], pos: int) -> bool:
    idx = bisect.bisect_right(spans, (pos, float("inf"))) - 1
    return idx >= 0 and spans[idx][0] <= pos < spans[idx][1]


def find_closing_bracket(text: str, start: int) -> int:
    """Return the index of the bracket closing the one at *start*, or -1."""
    opener = text[start]
    closer = _CLOSERS[_OPENERS.index(opener)]
    depth = 0
    i, n = start, len(text)
    while i < n:
        j = _skip_literal(text, i)
        if j != i:
            i = j
            continue
        c = text[i]
        if opener == "<" and text.startswith("=>", i):
            i += 2
            continue
        if c == opener:
            depth += 1
        elif c == closer:
            depth -= 1
            if depth == 0:
                return i
        i += 1
    return -1


def _scan_type(
    text: str,
    start: int,
    stop_chars: str,
    *,
    stop_on_arrow: bool = False,
    stop_on_brace: bool = False,
    continue_unions: bool = False,
) -> int:
    """Return the index where a type expression starting at *start* ends.

    The type ends at the first depth-0 character in *stop_chars*, at an
    unbalanced closing bracket, at ``=>`` when *stop_on_arrow* is set, or at
    ``{`` once some of the type has been consumed when *stop_on_brace* is set.
    """
    depth = 0
    seen = False
    i, n = start, len(text)
    while i < n:
        j = _skip_literal(text, i)
        if j != i:
            i = j
            seen = True
            continue
        c = text[i]
        if text.startswith("=>", i):
            if depth == 0 and stop_on_arrow:
                return i
            i += 2
            seen = True
            continue
        if depth == 0:
            if c == "\n" and continue_unions and _continues_union(text, i):
                i += 1
                continue
            if c in stop_chars:
                return i
            if c == "{" and stop_on_brace and seen:
                return i
        if c in _OPENERS:
            depth += 1
        elif c in _CLOSERS:
            if depth == 0:
                return i
            depth -= 1
        if not c.isspace():
            seen = True
        i += 1
    return n


def _continues_union(text: str, newline: int) -> bool:
    before = text[:newline].rstrip()
    after = text[newline:].lstrip()
    return before.endswith(("=", "|", "&")) or after.startswith(("|", "&"))


def _split_top_level(text: str, sep: str = ",") -> list[str]:
    parts: list[str] = []
    depth = 0
    last = 0
    i, n = 0, len(text)
    while i < n:
        j = _skip_literal(text, i)
        if j != i:
            i = j
            continue
        c = text[i]
        if text.startswith("=>", i):
            i += 2
            continue
        if c in _OPENERS:
            depth += 1
        elif c in _CLOSERS:
            depth -= 1
        elif c == sep and depth == 0:
            parts.append(text[last:i])
            last = i + 1
        i += 1
    parts.append(text[last:])
    return parts


def _find_top_level(text: str, targets: str) -> int:
    """Index of the first depth-0 character of *targets* (``=`` never matches ``=>``/``==``)."""
    depth = 0
    i, n = 0, len(text)
    while i < n:
        j = _skip_literal(text, i)
        if j != i:
            i = j
            continue
        c = text[i]
        if text.startswith("=>", i) or text.startswith("==", i):
            i += 2
            continue
        if c in _OPENERS:
            depth += 1
        elif c in _CLOSERS:
            depth -= 1
        elif c in targets and depth == 0:
            return i
        i += 1
    return -1


def _consume_line_end(text: str, i: int) -> int:
    """Advance past trailing spaces, an optional ``;`` and one newline."""
    n = len(text)
    while i < n and text[i] in " \t":
        i += 1
    if i < n and text[i] == ";":
        i += 1
    while i < n and text[i] in " \t":
        i += 1
    if i < n and text[i] == "\n":
        i += 1
    return i


# ---------------------------------------------------------------------------
# Imports and exports
# ---------------------------------------------------------------------------

_TYPE_IMPORT = re.compile(
    r"^[ \t]*import\s+type\s+(?:\{[^}]*\}|[\w$*\s,]+?)\s+from\s+(['\"])[^'\"\n]*\1[ \t]*;?[ \t]*\n?",
    re.MULTILINE,
)
_TYPE_EXPORT = re.compile(
    r"^[ \t]*export\s+type\s+\{[^}]*\}(?:\s+from\s+(['\"])[^'\"\n]*\1)?[ \t]*;?[ \t]*\n?",
    re.MULTILINE,
)
_NAMED_IMPORT = re.compile(
    r"^(?P<indent>[ \t]*)(?P<head>import\s+(?P<default>[\w$]+\s*,\s*)?)\{(?P<names>[^}]*)\}"
    r"(?P<tail>\s*from\s*(['\"])[^'\"\n]*\6[ \t]*;?)(?P<nl>[ \t]*\n?)",
    re.MULTILINE,
)
_TYPE_SPECIFIER = re.compile(r"^\s*type\s+[\w$]")


def _remove_type_imports(text: str) -> str:
    text = _TYPE_IMPORT.sub("", text)
    text = _TYPE_EXPORT.sub("", text)
    return _NAMED_IMPORT.sub(_rewrite_named_import, text)


def _rewrite_named_import(match: re.Match[str]) -> str:
    names = match.group("names")
    items = [item for item in names.split(",") if item.strip()]
    keep = [item.strip() for item in items if not _TYPE_SPECIFIER.match(item)]
    if len(keep) == len(items):
        return match.group(0)

    indent = match.group("indent")
    tail = match.group("tail")
    nl = match.group("nl")
    if not keep:
        default = match.group("default")
        if not default:
            return ""
        return f"{indent}import {default.split(',')[0].strip()}{tail}{nl}"

    if "\n" in names:
        first = next(line for line in names.split("\n") if line.strip())
        item_indent = first[: len(first) - len(first.lstrip())]
        body = ",\n".join(f"{item_indent}{item}" for item in keep)
        braces = "{\n" + body + "\n" + indent + "}"
    else:
        braces = "{ " + ", ".join(keep) + " }"
    return f"{indent}{match.group('head')}{braces}{tail}{nl}"


# ---------------------------------------------------------------------------
# Declarations
# ---------------------------------------------------------------------------

_BLOCK_DECLARATION = re.compile(
    r"^[ \t]*(?:export\s+)?(?:default\s+)?"
    r"(?:(?:declare\s+)?interface\s+[\w$]+\b|(?:declare\s+)?namespace\s+[\w$.]+"
    r"|declare\s+module\s+[\w$.'\"/@-]+|declare\s+global\b)[^{\n]*\{",
    re.MULTILINE,
)
_TYPE_ALIAS = re.compile(
    r"^[ \t]*(?:export\s+)?(?:declare\s+)?type\s+[\w$]+\s*(?:<[^=\n]*>)?\s*=",
    re.MULTILINE,
)
_DECLARE_STATEMENT = re.compile(
    r"^[ \t]*(?:export\s+)?declare\s+(?:const|let|var|function|class|enum)\b",
    re.MULTILINE,
)


def _remove_declarations(text: str) -> str:
    pos = 0
    while True:
        spans = _literal_spans(text)
        found = None
        for pattern in (_BLOCK_DECLARATION, _TYPE_ALIAS, _DECLARE_STATEMENT):
            for match in pattern.finditer(text, pos):
                if not _in_spans(spans, match.start()):
                    if found is None or match.start() < found[0].start():
                        found = (match, pattern)
                    break
        if found is None:
            return text
        match, pattern = found
        start = match.start()
        if pattern is _BLOCK_DECLARATION:
            close = find_closing_bracket(text, match.end() - 1)
            if close == -1:
                return text
            end = _consume_line_end(text, close + 1)
        elif pattern is _TYPE_ALIAS:
            end = _scan_type(text, match.end(), ";\n", continue_unions=True)
            end = _consume_line_end(text, end)
        else:
            line_end = text.find("\n", match.end())
            line_end = len(text) if line_end == -1 else line_end
            brace = text.find("{", match.end(), line_end)
            if brace != -1:
                close = find_closing_bracket(text, brace)
                line_end = close + 1 if close != -1 else line_end
            end = _consume_line_end(text, line_end)
        text = text[:start] + text[end:]
        pos = start


# ---------------------------------------------------------------------------
# Function signatures
# ---------------------------------------------------------------------------


def _strip_signatures(text: str) -> str:
    out: list[str] = []
    i, n = 0, len(text)
    while i < n:
        j = _skip_literal(text, i)
        if j != i:
            out.append(text[i:j])
            i = j
            continue
        if text[i] == "(":
            close = find_closing_bracket(text, i)
            if close != -1:
                resume = _signature_end(text, i, close)
                if resume is not None:
                    out.append("(" + _strip_params(text[i + 1:close]) + ")")
                    between = text[close + 1:resume]
                    out.append(" " if between.lstrip().startswith(":") else between)
                    i = resume
                    continue
        out.append(text[i])
        i += 1
    return "".join(out)


def _signature_end(text: str, open_idx: int, close_idx: int) -> int | None:
    """If the parens at *open_idx* are a parameter list, return where the body starts.

    The return value points past any return-type annotation, at ``=>`` or
    ``{``.  ``None`` means the parens are not a parameter list.
    """
    n = len(text)
    after = close_idx + 1
    while after < n and text[after] in " \t\n":
        after += 1
    if after >= n:
        return None

    body = after
    if text[after] == ":":
        body = _scan_type(text, after + 1, ";,", stop_on_arrow=True, stop_on_brace=True)
        if body >= n:
            return None

    if text.startswith("=>", body):
        return body
    if text[body] == "{" and _is_declaration_context(text, open_idx):
        return body
    return None


def _is_declaration_context(text: str, open_idx: int) -> bool:
    i = open_idx - 1
    while i >= 0 and text[i] in " \t\n":
        i -= 1
    if i >= 0 and text[i] == ">":
        depth = 0
        while i >= 0:
            if text[i] == ">":
                depth += 1
            elif text[i] == "<":
                depth -= 1
                if depth == 0:
                    break
            i -= 1
        i -= 1
        while i >= 0 and text[i] in " \t\n":
            i -= 1
    end = i + 1
    while i >= 0 and (text[i].isalnum() or text[i] in "_$"):
        i -= 1
    word = text[i + 1:end]
    if not word:
        return False
    if word in ("function", "catch", "constructor"):
        return True
    if word in _CONTROL_KEYWORDS:
        return False
    return True


def _strip_params(params: str) -> str:
    parts = _split_top_level(params)
    return ",".join(_strip_param(part) for part in parts)


def _strip_param(param: str) -> str:
    core = param.strip()
    if not core:
        return param
    lead = param[: len(param) - len(param.lstrip())]
    trail = param[len(param.rstrip()):]

    core = re.sub(r"^(?:(?:public|private|protected|readonly|override)\s+)+", "", core)

    eq = _find_top_level(core, "=")
    colon = _find_top_level(core, ":")
    default = ""
    if eq != -1 and (colon == -1 or eq < colon):
        name, default = core[:eq], core[eq:]
    elif colon != -1:
        name = core[:colon]
        rest = core[colon + 1:]
        rest_eq = _find_top_level(rest, "=")
        if rest_eq != -1:
            default = rest[rest_eq:]
    else:
        name = core

    name = name.rstrip()
    if name.endswith("?"):
        name = name[:-1].rstrip()
    if name == "this":
        return ""
    if default:
        value = _strip_signatures(default[1:].strip())
        return f"{lead}{name} = {value}{trail}"
    return f"{lead}{name}{trail}"


# ---------------------------------------------------------------------------
# Variable annotations, satisfies, casts
# ---------------------------------------------------------------------------

_VARIABLE_ANNOTATION = re.compile(
    r"\b(?:const|let|var)\s+(?:[\w$]+|\{[^{}]*\}|\[[^\[\]]*\])\s*(?P<bang>!?)\s*:"
)
_SATISFIES = re.compile(r"[ \t]+satisfies\s+")
_CAST = re.compile(r"(?<=[\w$)\]}'\"`])[ \t]+as[ \t]+")
_IMPORT_EXPORT_BRACES = re.compile(
    r"\b(?:import|export)\s+(?:[\w$]+\s*,\s*)?(?:type\s+)?\{[^}]*\}", re.MULTILINE
)


def _strip_variable_annotations(text: str) -> str:
    pos = 0
    while True:
        spans = _literal_spans(text)
        match = _next_code_match(_VARIABLE_ANNOTATION, text, pos, spans)
        if match is None:
            return text
        colon = match.end() - 1
        end = _scan_type(text, colon + 1, "=;,\n")
        head = text[:colon].rstrip()
        if match.group("bang"):
            head = head[:-1].rstrip()
        if end < len(text) and text[end] == "=":
            text = head + " " + text[end:]
        else:
            text = head + text[end:]
        pos = match.start() + 1


def _strip_satisfies(text: str) -> str:
    pos = 0
    while True:
        spans = _literal_spans(text)
        match = _next_code_match(_SATISFIES, text, pos, spans)
        if match is None:
            return text
        end = _scan_type(text, match.end(), ";,\n")
        if not _looks_like_type(text[match.end():end]):
            pos = match.end()
            continue
        text = text[:match.start()] + text[end:]
        pos = match.start()


def _strip_casts(text: str) -> str:
    pos = 0
    while True:
        spans = _literal_spans(text)
        skip = [m.span() for m in _IMPORT_EXPORT_BRACES.finditer(text)]
        match = _next_code_match(_CAST, text, pos, spans)
        if match is None:
            return text
        if any(s <= match.start() < e for s, e in skip) or not _CAST_TARGET.match(text, match.end()):
            pos = match.end()
            continue
        end = _scan_type(text, match.end(), ";,=\n?:")
        while end > match.end() and text[end - 1] in " \t":
            end -= 1
        if not _looks_like_type(text[match.end():end]):
            pos = match.end()
            continue
        text = text[:match.start()] + text[end:]
        pos = 0


_SIMPLE_TYPE = re.compile(
    r"^[\w$.]+(?:<[^<>]*(?:<[^<>]*>[^<>]*)*>)?(?:\[\])*"
    r"(?:\s*[|&]\s*[\w$.]+(?:<[^<>]*(?:<[^<>]*>[^<>]*)*>)?(?:\[\])*)*$"
)


def _looks_like_type(candidate: str) -> bool:
    """Reject prose such as JSX text ("Save as Draft</Button>") posing as a cast."""
    candidate = candidate.strip()
    if not candidate or "</" in candidate:
        return False
    if candidate[0] in "{[(":
        return True
    return bool(_SIMPLE_TYPE.match(candidate))


def _next_code_match(
    pattern: re.Pattern[str], text: str, pos: int, spans: list[tuple[int, int]]
) -> re.Match[str] | None:
    for match in pattern.finditer(text, pos):
        if not _in_spans(spans, match.start()):
            return match
    return None


# ---------------------------------------------------------------------------
# Generics, non-null assertions, implements
# ---------------------------------------------------------------------------

_GENERIC_CONTENT = re.compile(r"^[\w$\s.,\[\]{}|&:'\"?()=>\-]+$")
_ARROW_GENERIC = re.compile(r"(=\s*(?:async\s+)?)<[\w$\s,]+(?:extends[^<>=]*)?>\s*(?=\()")


def _strip_generic_arguments(text: str) -> str:
    text = _ARROW_GENERIC.sub(r"\1", text)
    out: list[str] = []
    i, n = 0, len(text)
    while i < n:
        j = _skip_literal(text, i)
        if j != i:
            out.append(text[i:j])
            i = j
            continue
        c = text[i]
        if c == "<" and i > 0 and (text[i - 1].isalnum() or text[i - 1] in "_$"):
            close = find_closing_bracket(text, i)
            if (
                close != -1
                and close + 1 < n
                and text[close + 1] == "("
                and _GENERIC_CONTENT.match(text[i + 1:close])
                and "\n" not in text[i + 1:close].strip("\n")
            ):
                i = close + 1
                continue
        out.append(c)
        i += 1
    return "".join(out)


_NON_NULL = re.compile(r"(?<=[\w$)\]])!(?=[.\[),;])")


def _strip_non_null_assertions(text: str) -> str:
    spans = _literal_spans(text)
    return _NON_NULL.sub(
        lambda m: m.group(0) if _in_spans(spans, m.start()) else "", text
    )


_IMPLEMENTS = re.compile(r"(\bclass\s+[\w$]+(?:\s+extends\s+[\w$.]+)?)\s+implements\s+[^{]+(?=\{)")


def _strip_implements(text: str) -> str:
    return _IMPLEMENTS.sub(r"\1 ", text)


# ---------------------------------------------------------------------------
# Cleanup
# ---------------------------------------------------------------------------


def _tidy(text: str, original: str) -> str:
    text = re.sub(r"\n{3,}", "\n\n", text)
    text = text.lstrip("\n")
    if original.endswith("\n") and not text.endswith("\n"):
        text += "\n"
    return text
