"""
mdoc(7) renderer for postprocessed definitions.

Takes a ready Definition plus the keyword index and produces one manual
page: NAME, SYNOPSIS (from the C declarations), DESCRIPTION (the comment
prose with its HTML translated to mdoc), IMPLEMENTATION NOTES and SEE
ALSO.
"""

from __future__ import annotations

import logging

from .htmltags import Tag, TagFlag, parse_tag, table_columns
from .parser import DeclKind
from .postprocess import DEFAULT_SECTION

log = logging.getLogger("mkdocs.plugins.capi3ref")

DEFAULT_LINKAGE_MARKERS = (
    "SQLITE_API",
    "SQLITE_DEPRECATED",
    "SQLITE_EXPERIMENTAL",
    "SQLITE_EXTERN",
    "SQLITE_STDCALL",
)

# Sentence-ending periods that aren't.
_ABBREVIATIONS = ("i.e.", "e.g.")

_ENTITIES = (
    ("&rarr;", "\\(->"),
    ("&larr;", "\\(<-"),
    ("&nbsp;", " "),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&#91;", "["),
)


class RenderConfig:
    def __init__(
        self,
        *,
        section=DEFAULT_SECTION,
        include="sqlite3.h",
        wrap_column=65,
        linkage_markers=DEFAULT_LINKAGE_MARKERS,
        verbose=False,
    ):
        self.section = section
        self.include = include
        self.wrap_column = wrap_column
        self.linkage_markers = tuple(linkage_markers)
        self.verbose = verbose


# -- synopsis --


def strip_linkage(text, markers=DEFAULT_LINKAGE_MARKERS):
    """Drop leading linkage macros such as ``SQLITE_API`` from a declaration."""
    i = 0
    while True:
        for m in markers:
            if text.startswith(m, i):
                i += len(m)
                while i < len(text) and text[i].isspace():
                    i += 1
                break
        else:
            return text[i:]


def split_params(text, start):
    """Split the parameter list opening just before ``text[start]``.

    Commas inside nested parentheses (function pointers) don't split,
    ``/* comments */`` are dropped and runs of white-space collapse to
    one space.
    """
    params = []
    n = len(text)
    i = start
    while True:
        while i < n and text[i].isspace():
            i += 1
        buf = []
        depth = 0
        while i < n:
            if text.startswith("/*", i):
                end = text.find("*/", i + 2)
                if end < 0:
                    i = n
                    break
                i = end + 2
                continue
            ch = text[i]
            if depth == 0 and ch in ",)":
                break
            if ch == "(":
                depth += 1
            elif ch == ")":
                depth -= 1
            if ch.isspace():
                while i < n and text[i].isspace():
                    i += 1
                if buf and buf[-1] != " ":
                    buf.append(" ")
                continue
            buf.append(ch)
            i += 1
        param = "".join(buf).strip()
        if param:
            params.append(param)
        if i >= n or text[i] == ")":
            return params
        i += 1


def render_synopsis(decl, definition=None, cfg=None):
    if cfg is None:
        cfg = RenderConfig()

    if decl.kind == DeclKind.PREPROCESSOR:
        return f".Fd #define {decl.text}\n"
    if decl.kind != DeclKind.C_CODE:
        return ""

    text = strip_linkage(decl.text, cfg.linkage_markers)

    if text.startswith("typedef"):
        return f".Vt {text}\n"

    brace = text.find("{")
    if len(text) > 2 and text[-2] == "}" and brace >= 0:
        return f".Vt {text[:brace].rstrip()};\n"

    if len(text) > 2 and text[-2] != ")":
        return f".Vt {text}\n"

    args = text.find("(")
    if args <= 0:
        return f".Bd -literal\n{text}\n.Ed\n"

    # type_t *function   (args...)
    head = text[:args].rstrip()
    cut = max(head.rfind(" "), head.rfind("*"), head.rfind("\t"))
    fn = head[cut + 1 :]
    rtype = head[: cut + 1].strip()
    if not fn and definition is not None:
        log.warning("capi3ref: %s: zero-length name", definition.where)

    lines = [f".Ft {rtype or 'void'}", f".Fo {fn}"]
    for param in split_params(text, args + 1):
        lines.append(f'.Fa "{param}"')
    lines.append(".Fc")
    return "\n".join(lines) + "\n"


# -- description --


def strip_markup(text):
    """Remove ``^(``, ``)^``, ``^`` and ``[[...]]`` from description prose."""
    out = []
    n = len(text)
    i = 0
    while i < n:
        if text.startswith("^(", i) or text.startswith(")^", i):
            i += 2
        elif text[i] == "^":
            i += 1
        elif text.startswith("[[", i):
            end = text.find("]]", i + 2)
            if end < 0:
                out.append(text[i])
                i += 1
            else:
                i = end + 2
        else:
            out.append(text[i])
            i += 1
    return "".join(out)


def _new_sentence(text, i):
    return text[max(0, i - 4) : i].lower() not in _ABBREVIATIONS


class _DescriptionWriter:
    def __init__(self, text, cfg):
        self.text = text
        self.n = len(text)
        self.cfg = cfg
        self.out = []
        self.col = 0
        # Set when white-space was held back before a possible macro.
        self.stripspace = 0
        self.incolumn = False
        self.inblockquote = False
        self.inlink = False

    def put(self, s):
        self.out.append(s)

    def newline(self):
        if self.col > 0:
            self.put("\n")
            self.col = 0

    def flush_space(self):
        while self.stripspace > 0:
            self.put(" ")
            self.col += 1
            self.stripspace -= 1

    def skip_space(self, i):
        while i < self.n and self.text[i].isspace():
            i += 1
        return i

    def render(self):
        text, n = self.text, self.n
        i = 0
        while i < n:
            if self.stripspace > 0:
                self.stripspace -= 1
            ch = text[i]
            nxt = text[i + 1] if i + 1 < n else ""

            # Newlines are paragraph breaks, unless a block macro follows.
            if ch == "\n":
                i = self.skip_space(i)
                m = parse_tag(text, i)
                if m is None or m.flags & TagFlag.INLINE:
                    self.newline()
                    self.put(".Pp\n")
                continue

            # New sentence, new line.
            if ch == " " and i > 0 and text[i - 1] == "." and not self.inlink:
                if _new_sentence(text, i):
                    while i < n and text[i] == " ":
                        i += 1
                    self.newline()
                    continue

            if ch == " " and self.col > self.cfg.wrap_column and not self.inlink:
                while i < n and text[i] == " ":
                    i += 1
                self.newline()
                continue

            if ch == "<" and nxt != "<":
                m = parse_tag(text, i)
                if m is not None:
                    i = self.tag(m, i)
                    self.stripspace = 0
                    continue
                self.flush_space()
            elif ch == "<":
                # Literal "<<" as in bit-shifting.
                self.flush_space()
            elif ch == "[" and nxt != "]":
                i = self.reference(i)
                self.stripspace = 0
                continue

            if ch == " " and self.col == 0:
                while i < n and text[i] == " ":
                    i += 1
                continue

            if ch == " ":
                j = i
                while j < n and text[j] == " ":
                    j += 1
                if j < n and text[j] in "\n<[":
                    self.stripspace = (j - i + 1) if text[j] != "\n" else 0
                    i = j
                    continue

            for entity, repl in _ENTITIES:
                if text.startswith(entity, i):
                    i += len(entity)
                    self.put(repl)
                    break
            else:
                if self.col == 0 and ch in ".'":
                    self.put("\\&")
                self.put(ch)
                i += 1
            self.col += 1

        self.newline()
        return "".join(self.out)

    def tag(self, m, i):
        tag, close = m.tag, m.close
        text = self.text

        if tag == Tag.A:
            if close:
                self.put('"\n')
                self.col = 0
                self.stripspace = 0
                self.inlink = False
            else:
                self.newline()
                self.put(f".Lk {m.attrs.get('href', '')} \"")
                self.col = 1
                self.stripspace = 0
                self.inlink = True
        elif tag == Tag.BLOCK:
            self.inblockquote = not close
        elif tag in (Tag.TD, Tag.TH):
            if not close:
                if self.incolumn:
                    self.newline()
                    self.put("T}\t")
                self.put("T{\n")
                self.col = 0
                self.incolumn = True
        elif tag == Tag.TR:
            if not close and self.incolumn:
                self.newline()
                self.put("T}\n")
                self.incolumn = False
        elif tag == Tag.TABLE:
            if not close and not self.inblockquote:
                self.newline()
                self.put(".sp\n")
            elif close and self.incolumn:
                self.newline()
                self.put("T}\n")
                self.incolumn = False

        i += m.length
        flags = m.flags

        # NOOP tags such as </dd> only close what the next .It or .El
        # closes anyway.
        if flags == TagFlag.NOOP:
            return self.skip_space(i)

        if flags == TagFlag.INLINE:
            self.flush_space()
            self.put(m.info.markup(close))
            return i

        # A breaking mdoc(7) statement.  Closers such as </p> only break.
        self.newline()
        markup = m.info.markup(close)
        if markup:
            self.put(markup)
            if not flags & TagFlag.NOBR:
                self.put("\n")
                self.col = 0
            elif not flags & TagFlag.NOSP:
                self.put(" ")
                self.col += len(markup) + 1
            else:
                self.col += len(markup)
        i = self.skip_space(i)

        if tag == Tag.TABLE and close:
            if not self.inblockquote:
                self.put(".sp\n")
            self.col = 0
        elif tag == Tag.TABLE:
            cols = table_columns(text, i)
            if cols:
                self.put(" ".join("l" * cols) + ".\n")
        return i

    def reference(self, i):
        """Render ``[token]``, ``[token|label]`` or ``[func()]``."""
        text, n = self.text, self.n
        end = i + 1
        while end < n and text[end] not in "|]":
            end += 1
        if end >= n:
            # Unterminated: a literal bracket.
            self.flush_space()
            self.put("[")
            self.col += 1
            return i + 1

        func_end = None
        if text[end] != "|":
            i += 1
            if end > 2 and text[end - 2 : end] == "()":
                self.newline()
                self.put(".Fn ")
                func_end = end - 2
            elif self.stripspace:
                self.put(" ")
                self.col += 1
        else:
            if self.stripspace:
                self.put(" ")
                self.col += 1
            i = end + 1

        i = self.skip_space(i)
        while i < n:
            if func_end is not None and i == func_end:
                i += 3
                while i < n and text[i] in ".,)":
                    self.put(" " + text[i])
                    i += 1
                i = self.skip_space(i)
                self.put("\n")
                self.col = 0
                break
            if text[i] == "]":
                i += 1
                break
            self.put(text[i])
            self.col += 1
            i += 1
        return i


def render_description(definition, cfg=None):
    if cfg is None:
        cfg = RenderConfig()
    text = strip_markup(definition.description).rstrip()
    return _DescriptionWriter(text, cfg).render()


# -- trailing sections --


def render_implementation(definition):
    return (
        "These declarations were extracted from the\n"
        f"interface documentation at line {definition.line}.\n"
        ".Bd -literal\n"
        f"{definition.full_text}"
        ".Ed\n"
    )


def resolve_xrefs(definition, index, verbose=False):
    """Canonical names for the definition's references, sorted and unique."""
    d = definition
    own = d.names[0] if d.names else None
    ordered = sorted(d.xrefs, key=lambda tok: (index.lookup(tok) or "").lower())
    out = []
    for tok in ordered:
        res = index.lookup(tok)
        if res is None:
            if verbose:
                log.warning("capi3ref: %s: ref not found: %s", d.where, tok)
            continue
        if res == own:
            if verbose:
                log.warning("capi3ref: %s: self-reference: %s", d.where, tok)
            continue
        if out and out[-1] == res:
            continue
        out.append(res)
    return out


def render_see_also(definition, index, cfg=None):
    if cfg is None:
        cfg = RenderConfig()
    names = resolve_xrefs(definition, index, cfg.verbose)
    if not names:
        return ""
    refs = " ,\n".join(f".Xr {nm} {cfg.section}" for nm in names)
    return f".Sh SEE ALSO\n{refs}\n"


def render_manpage(definition, index, cfg=None):
    if cfg is None:
        cfg = RenderConfig()
    d = definition
    if not d.ready:
        log.info("capi3ref: %s: not rendered, no usable declaration", d.where)
        return None

    parts = [
        ".Dd $" "Mdocdate$\n",
        f".Dt {d.title} {cfg.section}\n",
        ".Os\n",
        ".Sh NAME\n",
        " ,\n".join(f".Nm {nm}" for nm in d.names) + "\n",
        f".Nd {d.summary}\n",
        ".Sh SYNOPSIS\n",
    ]
    if cfg.include:
        parts.append(f".In {cfg.include}\n")
    for decl in d.declarations:
        parts.append(render_synopsis(decl, d, cfg))
    parts.append(".Sh DESCRIPTION\n")
    parts.append(render_description(d, cfg))
    parts.append(".Sh IMPLEMENTATION NOTES\n")
    parts.append(render_implementation(d))
    parts.append(render_see_also(d, index, cfg))
    return "".join(parts)
