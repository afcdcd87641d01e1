"""
Name extraction, keyword indexing and cross-reference collection.

Runs once over every parsed definition before anything is rendered.  The
resulting :class:`KeywordIndex` is the only shared state and is handed to
the renderer explicitly.
"""

from __future__ import annotations

import logging
import os
import re

from .parser import DeclKind

log = logging.getLogger("mkdocs.plugins.capi3ref")

DEFAULT_SECTION = "3"

_DOCUMENTED = (DeclKind.PREPROCESSOR, DeclKind.C_CODE)
_KEYWORD_RE = re.compile(r"\{([^}]*)\}?|([^\s{]\S*)")
_UNSAFE_FILENAME_RE = re.compile(r"[^A-Za-z0-9_-]")


def _is_boundary(text, i):
    ch = text[i]
    if ch == "(":
        return not text.startswith("*", i + 1)
    return ch in ";[){"


def grok_name(decl):
    """Return the declared name of ``decl``, or None if there isn't one.

    For C code this is the last word before the first ``;``, ``[``,
    ``(``, ``)`` or ``{``, with function-pointer ``(*`` and pointer stars
    skipped.  A preprocessor constant's text is its name.
    """
    if decl.kind == DeclKind.PREPROCESSOR:
        return decl.text or None
    text = decl.text
    if not text.endswith(";"):
        return None

    n = len(text)
    i = 0
    start = end = None
    while i < n:
        while i < n and text[i].isspace():
            i += 1
        if i >= n or _is_boundary(text, i):
            break
        if text[i] == "(":
            i += 1
        while i < n and text[i] == "*":
            i += 1
        start = i
        while i < n and not text[i].isspace() and not _is_boundary(text, i):
            i += 1
        end = i
        if i < n and _is_boundary(text, i):
            break

    if start is None or end == start:
        return None
    return text[start:end]


def parse_keywords(raw):
    """Split a KEYWORDS: buffer; ``{two words}`` is a single keyword."""
    out = []
    for m in _KEYWORD_RE.finditer(raw):
        kw = (m.group(1) if m.group(1) is not None else m.group(2)).strip()
        if kw:
            out.append(_collapse_space(kw))
    return out


def _collapse_space(text):
    return " ".join(text.split())


def scan_references(text):
    """Collect ``[token]`` and ``[token|label]`` targets from prose."""
    refs = []
    n = len(text)
    i = text.find("[")
    while i >= 0:
        if text.startswith("[[", i):
            i = text.find("[", i + 2)
            continue
        end = i + 1
        while end < n and text[end] not in "]|":
            end += 1
        if end >= n:
            break
        token = text[i + 1 : end].rstrip()
        if token.endswith("()"):
            token = token[:-2].rstrip()
        if token:
            refs.append(token)
        i = text.find("[", end + 1)
    return refs


def output_filename(name, section=DEFAULT_SECTION):
    return f"{_UNSAFE_FILENAME_RE.sub('_', name)}.{section}"


class KeywordIndex:
    """Maps names and keywords to the definition that documents them."""

    def __init__(self):
        self._entries = {}

    def register(self, key, definition):
        prev = self._entries.get(key)
        if prev is not None and prev is not definition:
            log.debug(
                "capi3ref: %s: keyword %r re-registered (was %s)",
                definition.where,
                key,
                prev.where,
            )
        self._entries[key] = definition

    def lookup(self, key):
        """Canonical (first) name of the definition registered for ``key``."""
        d = self._entries.get(key)
        if d is None or not d.names:
            return None
        return d.names[0]

    def __len__(self):
        return len(self._entries)


def postprocess(definition, index, *, prefix=".", filename_only=False, section=DEFAULT_SECTION):
    """Derive title, output name, names, keywords and references.

    Leaves ``definition.ready`` false (with a warning) when there is
    nothing to name the page after.
    """
    d = definition
    d.ready = False

    first = next((e for e in d.declarations if e.kind in _DOCUMENTED), None)
    if first is None:
        log.warning("capi3ref: %s: no entry to document", d.where)
        return False

    name = grok_name(first)
    if name is None:
        log.warning("capi3ref: %s: couldn't deduce entry name", d.where)
        return False

    d.title = name.upper()
    d.output_id = output_filename(name, section)
    d.output_path = d.output_id if filename_only else os.path.join(prefix, d.output_id)

    d.keywords = parse_keywords(d.keywords_raw)
    for kw in d.keywords:
        index.register(kw, d)

    d.names = []
    for decl in d.declarations:
        if decl.kind not in _DOCUMENTED:
            continue
        nm = grok_name(decl)
        if nm is None:
            continue
        d.names.append(nm)
        index.register(nm, d)
    if not d.names:
        log.warning("capi3ref: %s: no names found", d.where)
        return False

    d.xrefs = scan_references(d.see_also) + scan_references(d.description)
    d.ready = True
    return True


def find_collisions(definitions):
    """Report ready definitions that would be written to the same place.

    Returns ``(earlier, later)`` pairs in input order.  Nothing is
    changed; the later page simply overwrites the earlier one.
    """
    seen = {}
    pairs = []
    for d in definitions:
        if not d.ready:
            continue
        prev = seen.get(d.output_path)
        if prev is not None:
            log.warning(
                "capi3ref: %s: duplicate output name %s (also %s)",
                d.where,
                d.output_path,
                prev.where,
            )
            pairs.append((prev, d))
        seen[d.output_path] = d
    return pairs


def postprocess_all(definitions, *, prefix=".", filename_only=False, section=DEFAULT_SECTION):
    index = KeywordIndex()
    for d in definitions:
        postprocess(d, index, prefix=prefix, filename_only=filename_only, section=section)
    find_collisions(definitions)
    ready = sum(1 for d in definitions if d.ready)
    log.debug(
        "capi3ref: %d of %d definitions ready, %d keywords indexed",
        ready,
        len(definitions),
        len(index),
    )
    return index
