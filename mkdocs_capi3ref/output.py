"""
Writing rendered manual pages.

Pages go to one file each under the output prefix, all into a single
stream, or (names-only mode) only their target names are listed.
"""

from __future__ import annotations

import logging
import os

from .renderer import RenderConfig, render_manpage

log = logging.getLogger("mkdocs.plugins.capi3ref")


def write_manpages(definitions, index, cfg=None, *, stream=None, names_only=False):
    """Render every ready definition in input order.

    With ``stream`` set, pages (or just their target names when
    ``names_only``) are written there; otherwise each page is written to
    its ``output_path``.  Returns the list of targets produced.
    """
    if cfg is None:
        cfg = RenderConfig()

    written = []
    for d in definitions:
        if not d.ready:
            continue
        if names_only:
            if stream is not None:
                stream.write(d.output_path + "\n")
            written.append(d.output_path)
            continue

        page = render_manpage(d, index, cfg)
        if stream is not None:
            stream.write(page)
            written.append(d.output_path)
            continue

        parent = os.path.dirname(d.output_path)
        try:
            if parent:
                os.makedirs(parent, exist_ok=True)
            with open(d.output_path, "w", encoding="utf-8") as f:
                f.write(page)
        except OSError as exc:
            log.warning("capi3ref: %s: cannot write %s: %s", d.where, d.output_path, exc)
            continue
        log.debug("capi3ref: %s: wrote %s", d.where, d.output_path)
        written.append(d.output_path)
    return written
