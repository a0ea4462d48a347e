"""Rewrite rules applied by the dialect normalizer.

Each rule is a named, independently testable unit with ``apply(source) ->
(new_source, change_count)``. Rules are lexical: they never parse the module,
never reorder statements, and leave anything they do not recognize untouched.
"""
from __future__ import annotations

import bisect
import re
from dataclasses import dataclass
from typing import Callable, List, Tuple, Union

from constants import Constants

QUOTES = "\"'`"
IDENT = re.compile(r"[A-Za-z_$][\w$]*")


@dataclass(frozen=True)
class RewriteRule:
    """Regex rule: every match of ``pattern`` is replaced."""
    name: str
    pattern: re.Pattern
    replacement: Union[str, Callable[[re.Match], str]]

    def apply(self, source: str) -> Tuple[str, int]:
        return self.pattern.subn(self.replacement, source)


@dataclass(frozen=True)
class TransformRule:
    """Rule backed by a function; used where a regex alone cannot find the extent."""
    name: str
    transform: Callable[[str], Tuple[str, int]]

    def apply(self, source: str) -> Tuple[str, int]:
        return self.transform(source)


Rule = Union[RewriteRule, TransformRule]


# ----------------------------
# Lexical helpers
# ----------------------------
def _skip_string(text: str, i: int) -> int:
    """Index just past the string literal starting at ``i``.

    Single and double quoted strings end at a newline, so apostrophes in JSX
    text cannot swallow the rest of the file.
    """
    quote = text[i]
    i += 1
    n = len(text)
    while i < n:
        c = text[i]
        if c == "\\":
            i += 2
            continue
        if c == quote:
            return i + 1
        if c == "\n" and quote != "`":
            return i
        i += 1
    return n


def _skip_comment(text: str, i: int) -> int:
    """Index just past a ``//`` or ``/* */`` comment starting at ``i``; ``i`` otherwise."""
    if text.startswith("//", i):
        end = text.find("\n", i)
        return len(text) if end == -1 else end
    if text.startswith("/*", i):
        end = text.find("*/", i + 2)
        return len(text) if end == -1 else end + 2
    return i


def literal_spans(text: str) -> List[Tuple[int, int]]:
    """Spans of string literals and comments, in order."""
    spans = []
    i = 0
    n = len(text)
    while i < n:
        c = text[i]
        if c in QUOTES:
            end = _skip_string(text, i)
            spans.append((i, end))
            i = end
            continue
        if c == "/":
            end = _skip_comment(text, i)
            if end != i:
                spans.append((i, end))
                i = end
                continue
        i += 1
    return spans


def _inside(pos: int, spans: List[Tuple[int, int]], starts: List[int]) -> bool:
    idx = bisect.bisect_right(starts, pos) - 1
    return idx >= 0 and spans[idx][0] <= pos < spans[idx][1]


def scan_until(text: str, i: int, stops: str, stop_on_arrow: bool = False) -> int:
    """First index at or after ``i`` holding a top-level char from ``stops``.

    Brackets (including angle brackets) are balanced, string literals are
    skipped and ``=>`` is treated as one token. An unmatched closing bracket
    also ends the scan. Returns ``len(text)`` when nothing is found.
    """
    depth = 0
    n = len(text)
    while i < n:
        c = text[i]
        if c in QUOTES:
            i = _skip_string(text, i)
            continue
        if c == "=" and i + 1 < n and text[i + 1] == ">":
            if depth == 0 and stop_on_arrow:
                return i
            i += 2
            continue
        if depth == 0 and c in stops:
            return i
        if c in "([{<":
            depth += 1
        elif c in ")]}>":
            if depth == 0:
                return i
            depth -= 1
        i += 1
    return n


def _consume_line_end(text: str, i: int) -> int:
    """Advance past trailing spaces, an optional semicolon and one newline."""
    n = len(text)
    while i < n and text[i] in " \t":
        i += 1
    if i < n and text[i] == ";":
        i += 1
    while i < n and text[i] in " \t":
        i += 1
    if i < n and text[i] == "\r":
        i += 1
    if i < n and text[i] == "\n":
        i += 1
    return i


def _cut_spans(text: str, cuts: List[Tuple[int, int]]) -> str:
    out = []
    last = 0
    for start, end in cuts:
        out.append(text[last:start])
        last = end
    out.append(text[last:])
    return "".join(out)


# ----------------------------
# Directive and specifier rules
# ----------------------------
DIRECTIVE = RewriteRule(
    "strip-directive",
    re.compile(r"""\A\s*(["'])use (?:client|server)\1;?[ \t]*(?:\r?\n)*"""),
    "",
)


def specifier_rules(
    internal_alias: str = Constants.INTERNAL_ALIAS,
    shared_lib_alias: str = Constants.SHARED_LIB_ALIAS,
    hooks_alias: str = Constants.HOOKS_ALIAS,
) -> List[Rule]:
    """Rules mapping registry and relative specifiers onto the project's aliases."""
    internal = internal_alias.rstrip("/")
    shared = shared_lib_alias.rstrip("/")
    hooks = hooks_alias.rstrip("/")
    return [
        RewriteRule(
            "registry-lib-alias",
            re.compile(r"""(["'])@/registry/(?:[^"'\n]*?/)?lib/([^"'\n]+)\1"""),
            lambda m: f"{m.group(1)}{shared}/{m.group(2)}{m.group(1)}",
        ),
        RewriteRule(
            "registry-hooks-alias",
            re.compile(r"""(["'])@/registry/(?:[^"'\n]*?/)?hooks/([^"'\n]+)\1"""),
            lambda m: f"{m.group(1)}{hooks}/{m.group(2)}{m.group(1)}",
        ),
        RewriteRule(
            "registry-ui-alias",
            re.compile(r"""(["'])@/registry/(?:[^"'\n]*?/)?ui/([^"'\n]+)\1"""),
            lambda m: f"{m.group(1)}{internal}/{m.group(2)}{m.group(1)}",
        ),
        RewriteRule(
            "registry-fallback-alias",
            re.compile(r"""(["'])@/registry/(?:[^"'\n]*/)?([^"'/\n]+)\1"""),
            lambda m: f"{m.group(1)}{internal}/{m.group(2)}{m.group(1)}",
        ),
        RewriteRule(
            "relative-sibling",
            re.compile(r"""(\b(?:from|import)\s*)(["'])\./([\w-]+)\2"""),
            lambda m: f"{m.group(1)}{m.group(2)}{internal}/{m.group(3)}{m.group(2)}",
        ),
        RewriteRule(
            "relative-components-ui",
            re.compile(r"""(\b(?:from|import)\s*)(["'])(?:\.\./)+(?:components/)?ui/([\w-]+)\2"""),
            lambda m: f"{m.group(1)}{m.group(2)}{internal}/{m.group(3)}{m.group(2)}",
        ),
        RewriteRule(
            "relative-shared-lib",
            re.compile(r"""(\b(?:from|import)\s*)(["'])(?:\.\./)+lib/([\w-]+)\2"""),
            lambda m: f"{m.group(1)}{m.group(2)}{shared}/{m.group(3)}{m.group(2)}",
        ),
    ]


# ----------------------------
# Static typing removal
# ----------------------------
TYPE_ONLY_IMPORT = RewriteRule(
    "type-only-imports",
    re.compile(
        r"""^[ \t]*(?:import\s+type\s+[^;"']*?\bfrom\s*["'][^"'\n]+["']"""
        r"""|export\s+type\s*\{[^}]*\}(?:\s*from\s*["'][^"'\n]+["'])?);?[ \t]*(?:\r?\n)?""",
        re.MULTILINE,
    ),
    "",
)

_NAMED_CLAUSE = re.compile(
    r"""^([ \t]*(?:import|export)\s+)([\w$]+\s*,\s*)?\{([^{}]*)\}([ \t]*(?:from\s*["'][^"'\n]+["'])?;?[ \t]*)(\r?\n)?""",
    re.MULTILINE,
)


def _strip_inline_type_specifiers(source: str) -> Tuple[str, int]:
    count = 0

    def repl(m: re.Match) -> str:
        nonlocal count
        head, default, inner, tail, newline = m.groups()
        segments = inner.split(",")
        kept = [s for s in segments if not s.strip().startswith("type ")]
        if len(kept) == len(segments):
            return m.group(0)
        count += 1
        if not any(s.strip() for s in kept):
            if default:
                return f"{head}{default.rstrip().rstrip(',')}{tail}{newline or ''}"
            return ""
        trailing = re.search(r"\s*$", inner).group(0)
        body = ",".join(kept).rstrip() + trailing
        return f"{head}{default or ''}{{{body}}}{tail}{newline or ''}"

    return _NAMED_CLAUSE.sub(repl, source), count


_INTERFACE_START = re.compile(r"^[ \t]*(?:export\s+)?(?:declare\s+)?interface\s+[\w$]+", re.MULTILINE)


def _strip_interfaces(source: str) -> Tuple[str, int]:
    cuts = []
    for m in _INTERFACE_START.finditer(source):
        if cuts and m.start() < cuts[-1][1]:
            continue
        brace = scan_until(source, m.end(), "{")
        if brace >= len(source) or source[brace] != "{":
            continue
        close = scan_until(source, brace + 1, "}")
        if close >= len(source):
            continue
        cuts.append((m.start(), _consume_line_end(source, close + 1)))
    return _cut_spans(source, cuts), len(cuts)


_TYPE_ALIAS_START = re.compile(
    r"^[ \t]*(?:export\s+)?(?:declare\s+)?type\s+[\w$]+\s*", re.MULTILINE
)


def _type_alias_body(source: str, i: int) -> int:
    """Index just past the ``=`` of an alias whose name ends at ``i``; -1 if not an alias."""
    n = len(source)
    if i < n and source[i] == "<":
        gt = scan_until(source, i + 1, ">")
        if gt >= n or source[gt] != ">":
            return -1
        i = gt + 1
        while i < n and source[i].isspace():
            i += 1
    if i < n and source[i] == "=" and not source.startswith("=>", i):
        return i + 1
    return -1


def _type_alias_end(source: str, i: int) -> int:
    start = i
    n = len(source)
    while True:
        stop = scan_until(source, i, ";\n")
        if stop >= n:
            return n
        if source[stop] == ";":
            return _consume_line_end(source, stop)
        if not source[start:stop].strip():
            i = stop + 1
            continue
        nxt = stop + 1
        while nxt < n and source[nxt] in " \t\r":
            nxt += 1
        if nxt < n and source[nxt] in "|&":
            i = nxt
            continue
        return stop + 1


def _strip_type_aliases(source: str) -> Tuple[str, int]:
    cuts = []
    for m in _TYPE_ALIAS_START.finditer(source):
        if cuts and m.start() < cuts[-1][1]:
            continue
        body = _type_alias_body(source, m.end())
        if body < 0:
            continue
        cuts.append((m.start(), _type_alias_end(source, body)))
    return _cut_spans(source, cuts), len(cuts)


_GENERIC_OPEN = re.compile(r"(?<=[\w$])<")


def _strip_generic_call_arguments(source: str) -> Tuple[str, int]:
    """``React.forwardRef<A, B>(`` and ``function Foo<T>(`` lose their type arguments."""
    spans = literal_spans(source)
    starts = [s for s, _ in spans]
    cuts = []
    for m in _GENERIC_OPEN.finditer(source):
        lt = m.start()
        if (cuts and lt < cuts[-1][1]) or _inside(lt, spans, starts):
            continue
        gt = scan_until(source, lt + 1, ">")
        if gt >= len(source) or source[gt] != ">":
            continue
        if gt + 1 < len(source) and source[gt + 1] == "(":
            cuts.append((lt, gt + 1))
    return _cut_spans(source, cuts), len(cuts)


_ARROW_TYPE_PARAMS = re.compile(r"(?:(?<![=!<>])=|\basync)\s*(<)")
_TYPE_PARAM_LIST = re.compile(r"\bextends\b|,\s*$")


def _strip_arrow_type_parameters(source: str) -> Tuple[str, int]:
    """``const F = <T extends A = A>(`` loses its type parameters.

    A JSX element never holds ``extends`` or ends with a comma, so only
    bracket contents with one of those are cut.
    """
    spans = literal_spans(source)
    starts = [s for s, _ in spans]
    cuts = []
    for m in _ARROW_TYPE_PARAMS.finditer(source):
        lt = m.start(1)
        if (cuts and lt < cuts[-1][1]) or _inside(lt, spans, starts):
            continue
        gt = scan_until(source, lt + 1, ">")
        if gt >= len(source) or source[gt] != ">":
            continue
        if not _TYPE_PARAM_LIST.search(source[lt + 1:gt]):
            continue
        if gt + 1 < len(source) and source[gt + 1] == "(":
            cuts.append((lt, gt + 1))
    return _cut_spans(source, cuts), len(cuts)


_ANNOTATED_OPTIONAL = re.compile(r"\?(?=\s*[:,)=])")
_COLON = re.compile(r"[ \t]*:")


def _first_param_annotated(source: str, j: int) -> bool:
    n = len(source)
    while j < n and source[j].isspace():
        j += 1
    if source.startswith("...", j):
        j += 3
    if j < n and source[j] in "{[":
        close = scan_until(source, j + 1, "}]")
        if close >= n:
            return False
        j = close + 1
        while j < n and source[j] in " \t":
            j += 1
    else:
        m = IDENT.match(source, j)
        if not m:
            return False
        j = m.end()
    if j < n and source[j] == "?":
        j += 1
    return j < n and source[j] == ":"


def _rewrite_params(source: str, j: int) -> Tuple[str, int, int]:
    """Strip annotations from the parameter list opening at ``j``.

    Returns (rewritten, index after the list, annotations removed). Lists it
    cannot walk are returned unchanged up to where walking stopped.
    """
    n = len(source)
    pieces = []
    count = 0
    begin = j
    while j < n:
        k = j
        while k < n and source[k].isspace():
            k += 1
        if source.startswith("...", k):
            k += 3
        if k < n and source[k] in "{[":
            close = scan_until(source, k + 1, "}]")
            if close >= n:
                return source[begin:k], k, 0
            k = close + 1
        else:
            m = IDENT.match(source, k)
            if not m:
                return source[begin:k], k, 0
            k = m.end()
        pieces.append(source[j:k])
        opt = _ANNOTATED_OPTIONAL.match(source, k)
        if opt:
            k = opt.end()
        colon = _COLON.match(source, k)
        if colon:
            end = scan_until(source, colon.end(), ",)=")
            if end >= n:
                return source[begin:end], end, 0
            type_text = source[k:end]
            pieces.append(type_text[len(type_text.rstrip()):])
            k = end
            count += 1
        w = k
        while w < n and source[w].isspace():
            w += 1
        if w < n and source[w] == "=" and not source.startswith("=>", w):
            # default value
            w = scan_until(source, w + 1, ",)")
        pieces.append(source[k:w])
        k = w
        if k >= n:
            return source[begin:k], k, 0
        if source[k] == ",":
            pieces.append(",")
            j = k + 1
            close = scan_until(source, j, ")")
            if close < n and source[close] == ")" and not source[j:close].strip():
                # trailing comma
                pieces.append(source[j:close + 1])
                return "".join(pieces), close + 1, count
            continue
        if source[k] == ")":
            pieces.append(")")
            return "".join(pieces), k + 1, count
        return source[begin:k], k, 0
    return source[begin:], n, 0


def _strip_param_annotations(source: str) -> Tuple[str, int]:
    out = []
    i = 0
    n = len(source)
    count = 0
    while i < n:
        c = source[i]
        if c in QUOTES:
            end = _skip_string(source, i)
            out.append(source[i:end])
            i = end
            continue
        if c == "/":
            end = _skip_comment(source, i)
            if end != i:
                out.append(source[i:end])
                i = end
                continue
        if c == "(" and _first_param_annotated(source, i + 1):
            rewritten, nxt, removed = _rewrite_params(source, i + 1)
            out.append("(" + rewritten)
            i = nxt
            count += removed
            continue
        out.append(c)
        i += 1
    return "".join(out), count


_RETURN_ANNOTATION = re.compile(r"\):")


def _strip_return_annotations(source: str) -> Tuple[str, int]:
    spans = literal_spans(source)
    starts = [s for s, _ in spans]
    cuts = []
    for m in _RETURN_ANNOTATION.finditer(source):
        colon = m.start() + 1
        if _inside(colon, spans, starts):
            continue
        end = scan_until(source, colon + 1, "{;", stop_on_arrow=True)
        if end >= len(source) or source[end] == ";":
            continue
        type_text = source[colon + 1:end]
        if not type_text.strip():
            continue
        cuts.append((colon, colon + 1 + len(type_text.rstrip())))
    return _cut_spans(source, cuts), len(cuts)


_VARIABLE_ANNOTATION = re.compile(r"\b(?:const|let|var)\s+[\w$]+(\s*:)")


def _strip_variable_annotations(source: str) -> Tuple[str, int]:
    spans = literal_spans(source)
    starts = [s for s, _ in spans]
    cuts = []
    for m in _VARIABLE_ANNOTATION.finditer(source):
        colon = m.start(1)
        if _inside(colon, spans, starts):
            continue
        end = scan_until(source, m.end(1), "=;\n")
        if end >= len(source) or source[end] not in "=;\n":
            continue
        type_text = source[colon:end]
        cuts.append((colon, colon + len(type_text.rstrip())))
    return _cut_spans(source, cuts), len(cuts)


def _clause_spans(source: str) -> List[Tuple[int, int]]:
    return [(m.start(), m.end()) for m in _NAMED_CLAUSE.finditer(source)]


def _keyword_type_stripper(pattern: re.Pattern) -> Callable[[str], Tuple[str, int]]:
    def strip(source: str) -> Tuple[str, int]:
        spans = sorted(literal_spans(source) + _clause_spans(source))
        starts = [s for s, _ in spans]
        cuts = []
        for m in pattern.finditer(source):
            if (cuts and m.start() < cuts[-1][1]) or _inside(m.start() + 1, spans, starts):
                continue
            end = scan_until(source, m.end(), ",;)]}\n")
            cuts.append((m.start(), end))
        return _cut_spans(source, cuts), len(cuts)
    return strip


_AS_CAST = re.compile(
    r"(?<=[\w$)\]}])[ \t]+as[ \t]+(?=(?:const|unknown|any|string|number|boolean|keyof|typeof)\b|[A-Z])"
)
_SATISFIES = re.compile(r"(?<=[\w$)\]}])[ \t]+satisfies[ \t]+(?=[\w${\[])")

NON_NULL_ASSERTION = re.compile(r"(?<=[\w$)\]])!(?=\.|\[)")


def _strip_non_null(source: str) -> Tuple[str, int]:
    spans = literal_spans(source)
    starts = [s for s, _ in spans]
    cuts = [(m.start(), m.end()) for m in NON_NULL_ASSERTION.finditer(source)
            if not _inside(m.start(), spans, starts)]
    return _cut_spans(source, cuts), len(cuts)


def typing_rules() -> List[Rule]:
    """Rules removing static-typing-only syntax, in application order."""
    return [
        TYPE_ONLY_IMPORT,
        TransformRule("inline-type-specifiers", _strip_inline_type_specifiers),
        TransformRule("interface-declarations", _strip_interfaces),
        TransformRule("type-alias-declarations", _strip_type_aliases),
        TransformRule("generic-call-arguments", _strip_generic_call_arguments),
        TransformRule("generic-arrow-parameters", _strip_arrow_type_parameters),
        TransformRule("parameter-annotations", _strip_param_annotations),
        TransformRule("return-annotations", _strip_return_annotations),
        TransformRule("variable-annotations", _strip_variable_annotations),
        TransformRule("as-casts", _keyword_type_stripper(_AS_CAST)),
        TransformRule("satisfies-clauses", _keyword_type_stripper(_SATISFIES)),
        TransformRule("non-null-assertions", _strip_non_null),
    ]
