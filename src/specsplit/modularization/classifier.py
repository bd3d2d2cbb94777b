"""Sub-category classification and output file naming for component units.

The splitter answers two questions for the model builder:

* *Where does a component go?* Schemas are bucketed into ``error``,
  ``enum``, ``model`` or ``value``; parameters into their location.
* *What is its file called?* The components naming convention plus the
  configured prefix/suffix for the category.

File naming must be idempotent. A name that already carries the configured
affix (because it came from a previous run's output) has the affix stripped
before it is re-applied, so ``PetSchema`` never becomes ``PetSchemaSchema``.
"""

from __future__ import annotations

import re
from typing import Any, Optional

from specsplit.models import (
    ComponentCategory,
    ModularizeConfig,
    NamingConvention,
    ParameterLocation,
)
from specsplit.naming import NameNormalizer

_LOCATIONS = tuple(loc.value for loc in ParameterLocation)
_PARAMETER_SUFFIX = re.compile(r"(Header|Query|Path|Cookie|Param)$", re.IGNORECASE)
_ENUM_VALUES_SUFFIX = re.compile(r"Values?$", re.IGNORECASE)
_COMPOSITION_KEYS = ("allOf", "oneOf", "anyOf")


def normalize_location(value: Any) -> Optional[str]:
    text = str(value or "").strip().lower()
    return text if text in _LOCATIONS else None


def is_string_enum(schema: Any) -> bool:
    return (
        isinstance(schema, dict)
        and isinstance(schema.get("enum"), list)
        and schema.get("type") == "string"
    )


def is_object_like(schema: Any) -> bool:
    if not isinstance(schema, dict):
        return False
    if str(schema.get("type") or "").lower() == "object":
        return True
    if isinstance(schema.get("properties"), dict):
        return True
    return any(isinstance(schema.get(k), list) for k in _COMPOSITION_KEYS)


def _strip_parameter_decorations(name: str) -> str:
    """``query_limitParam`` -> ``limit``; never returns an empty name."""
    prefix, sep, rest = name.partition("_")
    if sep and rest and prefix.lower() in _LOCATIONS:
        name = rest
    return _PARAMETER_SUFFIX.sub("", name) or name


class ComponentSplitter:
    """Classify components and compute their output file names.

    Args:
        normalizer: Shared naming engine.
        config: Full modularize config (``naming``, ``affixes``,
            ``modularize_schemas``).
    """

    def __init__(self, normalizer: NameNormalizer, config: ModularizeConfig) -> None:
        self._normalizer = normalizer
        self._config = config

    # --- Classification ---

    def classify_schema(self, name: str, schema: Any) -> Optional[str]:
        """Return the bucket directory for a schema, or ``None`` when disabled."""
        settings = self._config.modularize_schemas
        if not settings.enabled:
            return None
        buckets = settings.buckets
        if self.is_error_schema(name, schema):
            return buckets.error
        if is_string_enum(schema):
            return buckets.enum
        if is_object_like(schema):
            return buckets.model
        return buckets.value

    def is_error_schema(self, name: str, schema: Any) -> bool:
        if isinstance(schema, dict) and schema.get("x-error") is True:
            return True
        lowered = str(name or "").lower()
        return any(
            p.lower() in lowered for p in self._config.modularize_schemas.error_name_patterns
        )

    def parameter_location(
        self, name: str, content: Any, tag: Optional[str] = None
    ) -> str:
        """Infer a parameter's location.

        Order: explicit *tag*, the ``in`` field, ``in`` of a wrapped
        ``content`` mapping, a ``<location>_`` name prefix, a
        ``...Header``/``...Query``/``...Path``/``...Cookie`` name suffix,
        then ``query``.
        """
        location = normalize_location(tag)
        if location:
            return location
        if isinstance(content, dict):
            location = normalize_location(content.get("in"))
            if location:
                return location
            wrapped = content.get("content")
            if isinstance(wrapped, dict):
                location = normalize_location(wrapped.get("in"))
                if location:
                    return location

        lowered = str(name).lower()
        prefix, sep, _ = lowered.partition("_")
        if sep and prefix in _LOCATIONS:
            return prefix
        for candidate in ("header", "query", "path", "cookie"):
            if lowered.endswith(candidate):
                return candidate
        return ParameterLocation.QUERY.value

    def sub_category(self, category: str, name: str, content: Any) -> Optional[str]:
        if category == ComponentCategory.SCHEMAS.value:
            return self.classify_schema(name, content)
        if category == ComponentCategory.PARAMETERS.value:
            return self.parameter_location(name, content)
        return None

    # --- File names ---

    def file_name(self, name: str, category: str, content: Any = None) -> str:
        """Compute the output base name (no extension) of a component."""
        affixes = self._config.affixes
        convention = self._config.naming.components
        prefix = affixes.prefixes.get(category, "") if affixes.enabled else ""
        suffix = affixes.suffixes.get(category, "") if affixes.enabled else ""
        enum_suffix = (
            affixes.enum_suffix
            if affixes.use_enum_suffix
            and category == ComponentCategory.SCHEMAS.value
            and is_string_enum(content)
            else ""
        )

        base = name
        if category == ComponentCategory.PARAMETERS.value:
            base = _strip_parameter_decorations(base)
        base = self._normalizer.strip_affixes(base, prefix, suffix)
        if enum_suffix:
            base = _ENUM_VALUES_SUFFIX.sub("", base) or base
            base = self._normalizer.strip_affixes(base, None, enum_suffix)

        file_name = self._normalizer.apply_convention(base, convention)
        file_name = self._normalizer.sanitize(file_name) or self._normalizer.sanitize(name)

        if enum_suffix:
            return self._normalizer.apply_affixes(file_name, prefix, enum_suffix)
        if category == ComponentCategory.SCHEMAS.value and self.is_generic_schema(base):
            return self._normalizer.apply_affixes(file_name, prefix)
        return self._normalizer.apply_affixes(file_name, prefix, suffix)

    def is_generic_schema(self, name: str) -> bool:
        lowered = name.lower()
        return any(item.lower() == lowered for item in self._config.affixes.exclude_from_suffix)

    def path_file_name(self, route: str) -> str:
        """Base name of a path file: the slugified route under the paths convention."""
        slug = self._normalizer.slugify_path(route)
        convention = self._config.naming.paths
        if convention == NamingConvention.KEBAB_CASE.value:
            return slug
        return self._normalizer.apply_convention(slug, convention)
