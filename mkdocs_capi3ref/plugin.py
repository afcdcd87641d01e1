"""
MkDocs plugin that ships mdoc(7) manuals alongside the built site.

Each configured header is scanned for CAPI3REF comments when the config
is loaded, so problems show up early in the build log; the manual pages
themselves are written into the site directory once the build is done.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field

from mkdocs.config import config_options
from mkdocs.config.base import Config as MkDocsConfig
from mkdocs.plugins import BasePlugin

from .output import write_manpages
from .parser import ParseError, parse_file
from .postprocess import KeywordIndex, postprocess_all
from .renderer import DEFAULT_LINKAGE_MARKERS, RenderConfig

log = logging.getLogger("mkdocs.plugins.capi3ref")


@dataclass
class HeaderRun:
    path: str
    lines: int = 0
    definitions: list = field(default_factory=list)
    index: KeywordIndex = field(default_factory=KeywordIndex)


class ManpageConfig(MkDocsConfig):
    enabled = config_options.Type(bool, default=True)
    headers = config_options.Type(list, default=[])
    output_dir = config_options.Type(str, default="man3")
    include = config_options.Type(str, default="sqlite3.h")
    section = config_options.Type(str, default="3")
    wrap_column = config_options.Type(int, default=65)
    linkage_markers = config_options.Type(list, default=list(DEFAULT_LINKAGE_MARKERS))
    verbose = config_options.Type(bool, default=False)


class ManpagePlugin(BasePlugin[ManpageConfig]):

    def __init__(self):
        super().__init__()
        self._runs = []

    def _rcfg(self):
        return RenderConfig(
            section=self.config["section"],
            include=self.config["include"],
            wrap_column=self.config["wrap_column"],
            linkage_markers=self.config["linkage_markers"],
            verbose=self.config["verbose"],
        )

    def _load(self, path):
        if not os.path.isfile(path):
            log.error("capi3ref: header not found: %s", path)
            return None
        try:
            result = parse_file(path)
        except ParseError:
            return None
        if not result.complete:
            log.warning("capi3ref: %s: incomplete interface comment, skipped", path)
            return None
        # Pages land in their own directory later on, so only the
        # file name is kept here.
        index = postprocess_all(
            result.definitions, filename_only=True, section=self.config["section"]
        )
        return HeaderRun(
            path=path, lines=result.lines, definitions=result.definitions, index=index
        )

    # ── MkDocs lifecycle hooks ──

    def on_config(self, config, **kwargs):
        self._runs = []
        if not self.config["enabled"]:
            return config
        config_dir = os.path.dirname(config.get("config_file_path", "") or "") or os.getcwd()
        for header in self.config["headers"]:
            path = header if os.path.isabs(header) else os.path.join(config_dir, header)
            run = self._load(os.path.normpath(path))
            if run is None:
                continue
            ready = sum(1 for d in run.definitions if d.ready)
            log.info(
                "capi3ref: %s: %d lines, %d interfaces, %d manual pages",
                run.path,
                run.lines,
                len(run.definitions),
                ready,
            )
            self._runs.append(run)
        return config

    def on_post_build(self, *, config, **kwargs):
        if not self._runs:
            return
        outdir = os.path.join(config["site_dir"], self.config["output_dir"])
        cfg = self._rcfg()
        total = 0
        for run in self._runs:
            for d in run.definitions:
                if d.ready:
                    d.output_path = os.path.join(outdir, d.output_id)
            total += len(write_manpages(run.definitions, run.index, cfg))
        log.info("capi3ref: %d manual pages written to %s", total, outdir)
