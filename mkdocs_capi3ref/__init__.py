"""
mkdocs-capi3ref: mdoc(7) manuals from CAPI3REF header comments.

Extracts the interface documentation embedded in C headers such as
sqlite3.h and renders one manual page per documented interface, with
synopsis, description, implementation notes and cross-references. Works
as a command-line tool or as an MkDocs plugin.
"""

__version__ = "1.0.0"
