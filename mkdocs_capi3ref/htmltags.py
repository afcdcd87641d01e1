"""
Lexer for the small HTML vocabulary found in CAPI3REF comments.

Only a fixed set of tags and attributes is understood.  Anything else is
left for the caller to print literally.  The table here also carries the
mdoc(7) replacement for each tag, which the description renderer uses.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntFlag


class Tag(Enum):
    A = "a"
    B = "b"
    BLOCK = "blockquote"
    BR = "br"
    DD = "dd"
    DL = "dl"
    DT = "dt"
    EM = "em"
    H3 = "h3"
    I = "i"  # noqa: E741
    LI = "li"
    OL = "ol"
    P = "p"
    PRE = "pre"
    SPAN = "span"
    TABLE = "table"
    TD = "td"
    TH = "th"
    TR = "tr"
    U = "u"
    UL = "ul"


class TagFlag(IntFlag):
    NONE = 0  # follow with newline
    NOBR = 0x01  # follow with space, not newline
    NOOP = 0x02  # just strip out
    NOSP = 0x04  # follow without space or newline
    INLINE = 0x08  # inline markup


ATTRS = ("href",)


@dataclass(frozen=True)
class TagInfo:
    omdoc: str
    cmdoc: str
    oflags: TagFlag
    cflags: TagFlag

    def markup(self, close):
        return self.cmdoc if close else self.omdoc

    def flags(self, close):
        return self.cflags if close else self.oflags


_INL = TagFlag.INLINE

TAG_TABLE = {
    Tag.A: TagInfo("", "", _INL, _INL),
    Tag.B: TagInfo("\\fB", "\\fP", _INL, _INL),
    Tag.BLOCK: TagInfo(".Bd -ragged", ".Ed\n.Pp", TagFlag.NONE, TagFlag.NONE),
    Tag.BR: TagInfo(" ", "", _INL, _INL),
    Tag.DD: TagInfo("", "", TagFlag.NOBR | TagFlag.NOSP, TagFlag.NOOP),
    Tag.DL: TagInfo(".Bl -tag -width Ds", ".El\n.Pp", TagFlag.NONE, TagFlag.NONE),
    Tag.DT: TagInfo(".It", "", TagFlag.NOBR, TagFlag.NOBR | TagFlag.NOSP),
    Tag.EM: TagInfo("\\fB", "\\fP", _INL, _INL),
    Tag.H3: TagInfo(".Ss", "", TagFlag.NOBR, TagFlag.NOBR | TagFlag.NOSP),
    Tag.I: TagInfo("\\fI", "\\fP", _INL, _INL),
    Tag.LI: TagInfo(".It", "", TagFlag.NONE, TagFlag.NOOP),
    Tag.OL: TagInfo(".Bl -enum", ".El\n.Pp", TagFlag.NONE, TagFlag.NONE),
    Tag.P: TagInfo(".Pp", "", TagFlag.NONE, TagFlag.NONE),
    Tag.PRE: TagInfo(".Bd -literal", ".Ed\n.Pp", TagFlag.NONE, TagFlag.NONE),
    Tag.SPAN: TagInfo("", "", _INL, _INL),
    Tag.TABLE: TagInfo(".TS", ".TE", TagFlag.NONE, TagFlag.NONE),
    Tag.TD: TagInfo("", "", TagFlag.NOOP, TagFlag.NOOP),
    Tag.TH: TagInfo("", "", TagFlag.NOOP, TagFlag.NOOP),
    Tag.TR: TagInfo("", "", TagFlag.NOOP, TagFlag.NOOP),
    Tag.U: TagInfo("\\fI", "\\fP", _INL, _INL),
    Tag.UL: TagInfo(".Bl -bullet", ".El\n.Pp", TagFlag.NONE, TagFlag.NONE),
}


@dataclass(frozen=True)
class TagMatch:
    tag: Tag
    close: bool
    length: int
    attrs: dict = field(default_factory=dict)

    @property
    def info(self):
        return TAG_TABLE[self.tag]

    @property
    def flags(self):
        return self.info.flags(self.close)


def _skip_space(text, pos):
    while pos < len(text) and text[pos].isspace():
        pos += 1
    return pos


def parse_tag(text, pos=0):
    """Lex one tag starting at ``text[pos]``.

    The tag must be written ``<name>`` or ``<name attr=...>`` (or the
    closing ``</name>`` form).  Returns a :class:`TagMatch` whose
    ``length`` covers the whole tag including ``>``, or None when there
    is no recognised tag here or the tag runs off the end of the text.
    """
    n = len(text)
    if pos >= n or text[pos] != "<":
        return None
    cur = pos + 1
    close = text.startswith("/", cur)
    if close:
        cur += 1

    for tag in Tag:
        name = tag.value
        end = cur + len(name)
        if text.startswith(name, cur) and end < n and text[end] in " >":
            cur = end
            break
    else:
        return None

    attrs = {}
    cur = _skip_space(text, cur)
    while cur < n and text[cur] != ">":
        start = cur
        while cur < n and text[cur] not in " =>":
            cur += 1
        if cur >= n:
            return None
        if text[cur] != "=":
            # Bare attribute such as "nowrap".
            cur = _skip_space(text, cur)
            continue
        name = text[start:cur]
        cur += 1
        if text.startswith('"', cur):
            endq = text.find('"', cur + 1)
            if endq < 0:
                return None
            value = text[cur + 1 : endq]
            cur = endq + 1
        else:
            start = cur
            while cur < n and text[cur] not in " >":
                cur += 1
            if cur >= n:
                return None
            value = text[start:cur]
        if name in ATTRS:
            attrs[name] = value
        cur = _skip_space(text, cur)

    if cur >= n:
        return None
    return TagMatch(tag=tag, close=close, length=cur + 1 - pos, attrs=attrs)


def table_columns(text, pos=0):
    """Guess the column count of the table whose body starts at ``pos``.

    Counts the ``<th`` (or, failing that, ``<td``) cells of the first
    row.  Returns 0 if the row can't be delimited.
    """
    row = text.find("<tr", pos)
    if row < 0:
        return 0
    row += 3
    end = text.find("<tr", row)
    if end < 0:
        end = text.find("</table", row)
    if end <= row:
        return 0
    body = text[row:end]
    if "<th" in body:
        return body.count("<th")
    return body.count("<td")
