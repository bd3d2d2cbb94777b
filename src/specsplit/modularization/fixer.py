"""Parse component references and compute relative file references.

A reference such as ``#/components/schemas/Pet`` means nothing once the
document is split into files. :class:`ReferenceFixer` recognises the
in-document forms a contract may use and, given the directory of the
referencing file, produces the relative path of the target file
(``../components/schemas/model/Pet.yaml``).

Recognised forms::

    #/components/<category>/<name>
    main.yaml#/components/<category>/<name>
    ../main.yaml#/components/<category>/<name>

Names are JSON-pointer decoded (``~1`` -> ``/``, ``~0`` -> ``~``).
"""

from __future__ import annotations

import posixpath
import re
from typing import NamedTuple, Optional

from specsplit.modularization.entities import ComponentUnit

_EXTERNAL = re.compile(r"^(?:[a-zA-Z][a-zA-Z0-9+.-]*:)?//")


class ComponentRef(NamedTuple):
    category: str
    name: str


def decode_pointer_token(token: str) -> str:
    return token.replace("~1", "/").replace("~0", "~")


class ReferenceFixer:
    """Reference parsing and relative-path arithmetic.

    Args:
        main_file_name: Entrypoint base name; references into the
            entrypoint file (``main.yaml#/components/...``) are treated like
            in-document ones.
    """

    def __init__(self, main_file_name: str = "main") -> None:
        self._component_ref = re.compile(
            r"^(?:(?:\.\./|\./)*"
            + re.escape(main_file_name)
            + r"\.(?:yaml|yml|json))?#/components/([^/]+)/(.+)$"
        )

    def parse_component_ref(self, ref: str) -> Optional[ComponentRef]:
        """Split a component reference into category and name, or ``None``."""
        match = self._component_ref.match(ref or "")
        if match is None:
            return None
        return ComponentRef(match.group(1), decode_pointer_token(match.group(2)))

    @staticmethod
    def is_external(ref: str) -> bool:
        return bool(_EXTERNAL.match(ref or ""))

    @staticmethod
    def is_relative_path(ref: str) -> bool:
        return (ref or "").startswith(("./", "../"))

    @staticmethod
    def relative_ref(from_directory: str, target: ComponentUnit) -> str:
        """Relative reference from a file in *from_directory* to *target*.

        From ``paths`` this is ``../components/<category>[/<sub>]/<file>``;
        within the same directory it is ``./<file>``.
        """
        relative = posixpath.relpath(target.relative_path, from_directory or ".")
        if not relative.startswith("../"):
            relative = "./" + relative
        return relative
