"""Naming-convention engine shared by every modularization stage.

:class:`NameNormalizer` splits identifiers into words and re-joins them under
one of the :class:`~specsplit.models.NamingConvention` styles. It is pure and
deterministic: the same input always produces the same output, which is what
makes re-running the modularizer on its own output stable.

The only side effect is a warning through :mod:`specsplit.output` when an
unknown convention is requested; the normalizer then falls back to
PascalCase instead of failing.
"""

from __future__ import annotations

import re
from typing import Optional, Union

from specsplit.models import NamingConvention
from specsplit.output import warning

# "HTTPError" -> "HTTP Error"
_ACRONYM_BOUNDARY = re.compile(r"([A-Z]+)([A-Z][a-z])")
# "petId" -> "pet Id", "Found2Response" -> "Found2 Response"
_CASE_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")
_SEPARATORS = re.compile(r"[^A-Za-z0-9]+")
_UNSAFE_FILE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")
_PLACEHOLDER = re.compile(r"\{([^}]+)\}")


class NameNormalizer:
    """Case conversion, affix handling, and sanitization for generated names."""

    def __init__(self) -> None:
        self._warned: set[str] = set()

    def to_words(self, name: str) -> list[str]:
        """Split *name* into lowercase word tokens.

        Splits on case boundaries, acronym boundaries, and any run of
        non-alphanumeric characters (underscores, hyphens, dots, spaces).

        Example::

            >>> NameNormalizer().to_words("getHTTPResponse_code-v2")
            ['get', 'http', 'response', 'code', 'v2']
        """
        text = _ACRONYM_BOUNDARY.sub(r"\1 \2", str(name or ""))
        text = _CASE_BOUNDARY.sub(r"\1 \2", text)
        return [word.lower() for word in _SEPARATORS.split(text) if word]

    def apply_convention(
        self, name: str, convention: Union[str, NamingConvention]
    ) -> str:
        """Re-join the words of *name* under *convention*.

        Unknown conventions fall back to PascalCase with a warning (once per
        convention). A name without word characters is returned unchanged.
        """
        words = self.to_words(name)
        if not words:
            return name

        style = self._resolve(convention)
        if style is NamingConvention.CAMEL_CASE:
            return words[0] + "".join(_capitalize(w) for w in words[1:])
        if style is NamingConvention.SNAKE_CASE:
            return "_".join(words)
        if style is NamingConvention.KEBAB_CASE:
            return "-".join(words)
        if style is NamingConvention.LOWERCASE:
            return "".join(words)
        if style is NamingConvention.UPPERCASE:
            return "_".join(w.upper() for w in words)
        return "".join(_capitalize(w) for w in words)

    def apply_affixes(
        self, name: str, prefix: Optional[str] = None, suffix: Optional[str] = None
    ) -> str:
        """Concatenate *prefix* + *name* + *suffix* unconditionally.

        Callers that must not double an affix call :meth:`strip_affixes`
        first.
        """
        return f"{prefix or ''}{name}{suffix or ''}"

    def strip_affixes(
        self, name: str, prefix: Optional[str] = None, suffix: Optional[str] = None
    ) -> str:
        """Remove *prefix* / *suffix* from *name* when already present.

        Never strips an affix that makes up the whole name. A prefix only
        counts when it ends on a word boundary: ``Sch`` is stripped from
        ``SchPet`` but not from ``Schedule``.
        """
        if suffix and name.endswith(suffix) and len(name) > len(suffix):
            name = name[: -len(suffix)]
        if prefix and name.startswith(prefix) and len(name) > len(prefix):
            rest = name[len(prefix):]
            if not prefix[-1].isalnum() or rest[0].isupper() or not rest[0].isalnum():
                name = rest
        return name

    def sanitize(self, name: str) -> str:
        """Collapse characters that are unsafe in file names into hyphens."""
        return _UNSAFE_FILE_CHARS.sub("-", str(name or "").strip()).strip("-")

    def slugify_path(self, route: str) -> str:
        """Turn a route template into a file-name slug.

        ``/pet/{petId}/uploadImage`` becomes ``pet-petid-uploadimage``; the
        root route ``/`` becomes ``root``.
        """
        text = _PLACEHOLDER.sub(r"\1", route.strip("/"))
        slug = re.sub(r"[^A-Za-z0-9]+", "-", text).strip("-").lower()
        return slug or "root"

    def _resolve(self, convention: Union[str, NamingConvention]) -> NamingConvention:
        try:
            return NamingConvention(convention)
        except ValueError:
            key = str(convention)
            if key not in self._warned:
                self._warned.add(key)
                warning(f"Unknown naming convention '{key}', using PascalCase")
            return NamingConvention.PASCAL_CASE


def _capitalize(word: str) -> str:
    return word[:1].upper() + word[1:]


def route_placeholders(route: str) -> list[str]:
    """Return the ``{name}`` placeholders of a route template, in order."""
    return _PLACEHOLDER.findall(route)
