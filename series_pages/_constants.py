"""Common literal values used across series_pages.

These constants keep output filenames and well-known collection names
centralized so the indexer, assembler, templates, and tests can import the
same values without drifting. Intended for internal use within the
series_pages package.

Examples
--------
>>> from series_pages import _constants
>>> _constants.COLLECTION_PATH_TEMPLATE.format(slug="demo")
'collections/demo.html'
>>> _constants.UNCATEGORIZED
'uncategorized'
"""

UNCATEGORIZED = "uncategorized"
INDEX_FILENAME = "index.html"
COLLECTION_PATH_TEMPLATE = "collections/{slug}.html"
STYLESHEET_FILENAME = "highlight.css"
DEFAULT_CONFIG_FILENAME = "_config.yml"
MARKDOWN_SUFFIXES = (".md", ".markdown")
