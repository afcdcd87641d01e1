"""
Line scanner for CAPI3REF interface comments in C headers.

The scanner is a small state machine fed one physical line at a time.  A
comment line of the form ``** CAPI3REF: Summary`` opens a definition;
the rest of the comment supplies keywords, a description and "see also"
text, and the declarations following the comment are assembled into
:class:`Declaration` records until a blank line.
"""

from __future__ import annotations

import logging
import re
import string
from dataclasses import dataclass, field
from enum import Enum, auto

log = logging.getLogger("mkdocs.plugins.capi3ref")

MARKER = "**"
TRIGGER = "CAPI3REF:"
KEYWORDS = "KEYWORDS:"
SEE_ALSO = "see also:"
COMMENT_END = "*/"


class Phase(Enum):
    INIT = auto()  # waiting for a definition
    KEYWORDS = auto()  # have definition, now keywords
    DESCRIPTION = auto()  # have keywords, now description
    SEE_ALSO = auto()
    DECL = auto()  # have description, now declarations


class DeclKind(Enum):
    PREPROCESSOR = auto()  # #define NAME
    C_CODE = auto()  # semicolon-closed C
    MALFORMED = auto()  # C that never saw its closing semicolon


@dataclass
class Declaration:
    kind: DeclKind
    text: str = ""

    def extend(self, fragment):
        if self.text and not self.text.endswith(" "):
            self.text += " "
        self.text += _collapse(fragment)


@dataclass
class Definition:
    summary: str
    filename: str = ""
    line: int = 0
    description: str = ""
    full_text: str = ""
    see_also: str = ""
    keywords_raw: str = ""
    declarations: list[Declaration] = field(default_factory=list)
    # Filled in by postprocessing
    title: str = ""
    output_id: str = ""
    output_path: str = ""
    names: list[str] = field(default_factory=list)
    keywords: list[str] = field(default_factory=list)
    xrefs: list[str] = field(default_factory=list)
    ready: bool = False

    @property
    def where(self):
        return f"{self.filename}:{self.line}"


@dataclass
class ParseResult:
    filename: str
    definitions: list[Definition]
    phase: Phase
    lines: int

    @property
    def complete(self):
        return self.phase in (Phase.INIT, Phase.DECL)


class ParseError(RuntimeError):
    def __init__(self, filename, line, message):
        super().__init__(f"{filename}:{line}: {message}")
        self.filename = filename
        self.line = line


_WS_RE = re.compile(r"\s+")
_SUMMARY_TRAILING = string.whitespace + ".,;:"


def _collapse(text):
    return _WS_RE.sub(" ", text)


def untitle(summary):
    """Lower-case the leading capital of each word in a summary.

    A word keeps its capital when the next character is also upper case
    or punctuation ("SQL", "I/O").  Trailing spaces and sentence
    punctuation are dropped.
    """
    chars = list(summary.rstrip(_SUMMARY_TRAILING))
    for i, ch in enumerate(chars):
        if not ch.isupper() or (i > 0 and not chars[i - 1].isspace()):
            continue
        nxt = chars[i + 1] if i + 1 < len(chars) else ""
        if nxt.isupper() or (nxt and nxt in string.punctuation):
            continue
        chars[i] = ch.lower()
    return "".join(chars)


class DeclarationAssembler:
    """Joins declaration lines into :class:`Declaration` records.

    C declarations may span any number of lines and are closed by a
    semicolon outside of braces, so a struct body stays one declaration
    until its ``};``.
    """

    def __init__(self, declarations, *, filename="", line=0):
        self.declarations = declarations
        self.filename = filename
        self.line = line
        self.multiline = False
        self.depth = 0

    def feed(self, fragment):
        fragment = fragment.strip()
        if not fragment:
            return
        if fragment.startswith("#define"):
            self._define(fragment[len("#define") :])
        elif fragment.startswith("#"):
            return
        elif fragment.startswith("/*") and fragment.endswith("*/"):
            return
        else:
            self._c_code(fragment)

    def close(self):
        """Finish the declaration block, downgrading anything still open."""
        if not self.multiline:
            return
        log.warning(
            "capi3ref: %s:%d: multiline declaration still open", self.filename, self.line
        )
        self.declarations[-1].kind = DeclKind.MALFORMED
        self.multiline = False
        self.depth = 0

    def _define(self, rest):
        rest = rest.strip()
        if not rest:
            log.warning("capi3ref: %s:%d: empty pre-processor constant", self.filename, self.line)
            return
        self.close()
        name = rest.split(None, 1)[0]
        self.declarations.append(Declaration(DeclKind.PREPROCESSOR, name))

    def _c_code(self, text):
        # Semicolons split a line into as many declarations as it holds.
        while True:
            text = text.lstrip()
            if not text:
                return
            if self.multiline:
                decl = self.declarations[-1]
            else:
                decl = Declaration(DeclKind.C_CODE)
                self.declarations.append(decl)

            semi = text.find(";")
            if semi < 0:
                self.depth += text.count("{") - text.count("}")
                self.depth = max(self.depth, 0)
                self.multiline = True
                decl.extend(text)
                return

            head, text = text[: semi + 1], text[semi + 1 :]
            self.depth = max(self.depth + head.count("{") - head.count("}"), 0)
            self.multiline = self.depth > 0
            decl.extend(head)


class Parser:
    def __init__(self, filename="<stdin>"):
        self.filename = filename
        self.line = 0
        self.phase = Phase.INIT
        self.definitions = []
        self._assembler = None

    @property
    def current(self):
        return self.definitions[-1]

    def _warn(self, msg, *args):
        log.warning("capi3ref: %s:%d: " + msg, self.filename, self.line, *args)

    def feed(self, line):
        """Advance the state machine by one line (without its newline)."""
        self.line += 1
        handler = {
            Phase.INIT: self._init,
            Phase.KEYWORDS: self._keywords,
            Phase.DESCRIPTION: self._description,
            Phase.SEE_ALSO: self._see_also,
            Phase.DECL: self._decl,
        }[self.phase]
        handler(line)

    def finish(self):
        if self.phase == Phase.DECL:
            self._end_decl()
        elif self.phase != Phase.INIT:
            self._warn("exit when not in initial state")

    def _comment_body(self, line, what):
        """Strip the ``**`` marker, or fall back to INIT on a broken comment."""
        if not line.startswith(MARKER):
            self._warn("unexpected end of interface %s", what)
            self.phase = Phase.INIT
            return None
        return line[len(MARKER) :].strip()

    def _init(self, line):
        if not line.startswith(MARKER):
            return
        body = line[len(MARKER) :].lstrip()
        if not body.startswith(TRIGGER):
            return
        summary = body[len(TRIGGER) :].strip()
        if not summary:
            self._warn("unexpected end of interface definition")
            return
        self.definitions.append(
            Definition(summary=untitle(summary), filename=self.filename, line=self.line)
        )
        self.phase = Phase.KEYWORDS

    def _keywords(self, line):
        if line.rstrip() == COMMENT_END:
            self._start_decl()
            return
        body = self._comment_body(line, "keywords")
        if body is None:
            return
        if not body:
            self.phase = Phase.DESCRIPTION
        elif body.startswith(KEYWORDS):
            d = self.current
            if d.keywords_raw:
                d.keywords_raw += " "
            d.keywords_raw += body[len(KEYWORDS) :].strip()

    def _description(self, line):
        if line.rstrip() == COMMENT_END:
            self._start_decl()
            return
        body = self._comment_body(line, "description")
        if body is None:
            return
        d = self.current
        if body[: len(SEE_ALSO)].lower() == SEE_ALSO:
            self._append_see_also(body[len(SEE_ALSO) :])
            self.phase = Phase.SEE_ALSO
            return
        if not body and not d.description:
            return
        if d.description and d.description[-1] not in " \n":
            d.description += " "
        d.description += body if body else "\n"

    def _see_also(self, line):
        if line.rstrip() == COMMENT_END:
            self._start_decl()
            return
        body = self._comment_body(line, "see also")
        if body is None:
            return
        if not body:
            self.phase = Phase.DESCRIPTION
            return
        self._append_see_also(body)

    def _append_see_also(self, text):
        d = self.current
        text = text.strip()
        if not text:
            return
        if d.see_also:
            d.see_also += " "
        d.see_also += text

    def _start_decl(self):
        d = self.current
        self._assembler = DeclarationAssembler(d.declarations, filename=self.filename)
        self.phase = Phase.DECL

    def _decl(self, line):
        self._assembler.line = self.line
        if not line.strip():
            self._end_decl()
            return
        self.current.full_text += line + "\n"
        self._assembler.feed(line)

    def _end_decl(self):
        self._assembler.line = self.line
        self._assembler.close()
        self._assembler = None
        self.phase = Phase.INIT


def parse_lines(lines, filename="<stdin>"):
    """Scan newline-terminated ``lines`` and collect their definitions.

    Raises :class:`ParseError` on a line without its terminator, which
    stops the scan.
    """
    p = Parser(filename)
    for raw in lines:
        if not raw.endswith("\n"):
            p.line += 1
            log.error("capi3ref: %s:%d: unterminated line", filename, p.line)
            raise ParseError(filename, p.line, "unterminated line")
        p.feed(raw[:-1])
    p.finish()
    return ParseResult(
        filename=filename, definitions=p.definitions, phase=p.phase, lines=p.line
    )


def parse_file(filepath):
    with open(filepath, "r", encoding="utf-8", errors="replace") as f:
        return parse_lines(f, filepath)
