"""Document source -- read an OpenAPI 3.x contract into an immutable document.

Typical usage::

    from specsplit.parser import load_document

    document = load_document("openapi.yaml")

Sub-modules:

* :mod:`~specsplit.parser.loader` -- I/O layer (URL, file, stdin) plus
  format detection.
"""

from specsplit.parser.loader import load_document, load_source

__all__ = ["load_document", "load_source"]
