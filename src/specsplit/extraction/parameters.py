"""Discover repeated inline parameters and promote them to shared components.

Parameters are identified by their *logical key*, ``<in>:<lowercased name>``,
not by their full definition: two slightly different declarations of the
same query parameter are merged into one component instead of producing
``Limit``, ``Limit2``, ``Limit3``. The merge never loses information:

* ``required`` is OR'd;
* the longer non-empty ``description`` wins;
* optional serialization fields are taken from the first declaration that
  has them;
* the more complete ``schema`` wins (ties merge shallowly, first wins);
* ``x-*`` extensions are never overwritten once set.

A ``path`` parameter is only eligible on a route whose template contains its
``{name}`` placeholder. Anything else would become a shared component that
produces an invalid reference, so it is left inline with a warning.

The extractor does not touch the document. It returns the units plus a
reference map the model builder uses to replace each inline slot.
"""

from __future__ import annotations

import copy
import re
from dataclasses import dataclass
from typing import Any, Optional

from specsplit.models import (
    ExtractedParameter,
    HTTPMethod,
    ModularizeConfig,
    ParameterExtractionResult,
    ParameterLocation,
)
from specsplit.naming import NameNormalizer, route_placeholders
from specsplit.output import debug, step, warning

PATH_LEVEL = "parameters"
"""Reference-map scope for parameters declared on the path item itself."""

_HTTP_METHODS = frozenset(m.value for m in HTTPMethod)
_FIRST_WINS_FIELDS = (
    "deprecated",
    "style",
    "explode",
    "allowEmptyValue",
    "allowReserved",
    "example",
    "examples",
    "content",
)
_RICH_SCHEMA_KEYS = ("format", "enum", "items")
_STRUCTURAL_SCHEMA_KEYS = ("properties", "allOf", "oneOf", "anyOf", "$ref")
_NON_ALNUM = re.compile(r"[^A-Za-z0-9_]+")


@dataclass
class _Occurrence:
    route: str
    scope: str
    index: int
    size: int
    parameter: dict[str, Any]


def parse_location(value: Any) -> Optional[ParameterLocation]:
    """Return the location for an ``in`` value, or ``None`` if unrecognized."""
    try:
        return ParameterLocation(str(value or "").strip().lower())
    except ValueError:
        return None


def schema_completeness(schema: Any) -> int:
    """Score how much a schema says; -1 when there is no schema at all."""
    if not isinstance(schema, dict):
        return -1
    score = len(schema)
    score += 2 * sum(1 for k in _RICH_SCHEMA_KEYS if k in schema)
    score += 3 * sum(1 for k in _STRUCTURAL_SCHEMA_KEYS if k in schema)
    return score


def pick_more_complete_schema(first: Any, second: Any) -> Any:
    """Return the more complete of two schemas; ties merge with *first* winning."""
    first_score = schema_completeness(first)
    second_score = schema_completeness(second)
    if first_score < 0 and second_score < 0:
        return first
    if second_score > first_score:
        return copy.deepcopy(second)
    if first_score > second_score:
        return first
    merged = copy.deepcopy(second)
    merged.update(first)
    return merged


def _is_empty(value: Any) -> bool:
    return value is None or value == "" or value == [] or value == {}


def merge_parameter(target: dict[str, Any], incoming: dict[str, Any]) -> dict[str, Any]:
    """Fold *incoming* into *target* (mutated and returned)."""
    if incoming.get("required"):
        target["required"] = True

    incoming_description = incoming.get("description")
    if isinstance(incoming_description, str) and len(incoming_description.strip()) > len(
        str(target.get("description") or "").strip()
    ):
        target["description"] = incoming_description

    for key in _FIRST_WINS_FIELDS:
        if key not in target and key in incoming:
            target[key] = copy.deepcopy(incoming[key])

    if "schema" in target or "schema" in incoming:
        schema = pick_more_complete_schema(target.get("schema"), incoming.get("schema"))
        if schema is not None:
            target["schema"] = schema

    for key, value in incoming.items():
        if key.startswith("x-") and _is_empty(target.get(key)) and not _is_empty(value):
            target[key] = copy.deepcopy(value)
    return target


class ParameterExtractor:
    """Extract parameters shared across operations, bucketed by location.

    Args:
        normalizer: Shared naming engine.
        config: Full modularize config (uses ``parameters`` and ``naming``).
    """

    def __init__(self, normalizer: NameNormalizer, config: ModularizeConfig) -> None:
        self._normalizer = normalizer
        self._min_occurrences = config.parameters.min_occurrences
        self._convention = config.naming.components

    def extract(
        self, paths: dict[str, Any], existing: Optional[dict[str, Any]] = None
    ) -> ParameterExtractionResult:
        """Find repeated parameters in *paths*.

        Args:
            paths: The document's path map. It is not modified.
            existing: ``components.parameters`` of the document; their names
                are reserved so that generated names never collide with them
                inside the same location bucket.

        Returns:
            Units keyed by composite key, plus the per-slot reference map.
        """
        groups: dict[str, list[_Occurrence]] = {}
        for occurrence in self._collect(paths or {}):
            location = parse_location(occurrence.parameter.get("in"))
            name = str(occurrence.parameter.get("name"))
            groups.setdefault(f"{location.value}:{name.lower()}", []).append(occurrence)

        used = self._reserved_names(existing or {})
        result = ParameterExtractionResult()
        for logical_key, occurrences in groups.items():
            if logical_key.startswith(f"{ParameterLocation.PATH.value}:"):
                occurrences = self._matching_placeholder(occurrences)
            if len(occurrences) < self._min_occurrences:
                continue

            merged = copy.deepcopy(occurrences[0].parameter)
            for occurrence in occurrences[1:]:
                merge_parameter(merged, occurrence.parameter)

            location = parse_location(merged.get("in"))
            if location is ParameterLocation.PATH:
                merged["required"] = True

            unit = ExtractedParameter(
                name=self.generate_name(str(merged.get("name")), used[location]),
                location=location,
                content=merged,
                occurrences=len(occurrences),
            )
            result.units[unit.key] = unit
            step(f"parameter {logical_key} x{len(occurrences)} -> {unit.key}")

            for occurrence in occurrences:
                slots = result.reference_map.setdefault(occurrence.route, {}).setdefault(
                    occurrence.scope, [None] * occurrence.size
                )
                slots[occurrence.index] = unit.key

        if result.units:
            debug(f"Extracted {len(result.units)} shared parameter(s)")
        return result

    def generate_name(self, raw_name: str, used: set[str]) -> str:
        """Name a parameter component, unique within its location bucket."""
        name = self._normalizer.apply_convention(raw_name, self._convention)
        name = _NON_ALNUM.sub("", name)
        if not name:
            name = "Param"
        name = name[:1].upper() + name[1:]

        candidate = name
        counter = 2
        while candidate.lower() in used:
            candidate = f"{name}{counter}"
            counter += 1
        used.add(candidate.lower())
        return candidate

    def _collect(self, paths: dict[str, Any]) -> list[_Occurrence]:
        found: list[_Occurrence] = []
        for route, path_item in paths.items():
            if not isinstance(path_item, dict):
                continue
            placeholders = set(route_placeholders(route))
            scopes: list[tuple[str, Any]] = [(PATH_LEVEL, path_item.get(PATH_LEVEL))]
            for method, operation in path_item.items():
                if method.lower() in _HTTP_METHODS and isinstance(operation, dict):
                    scopes.append((method, operation.get("parameters")))

            for scope, parameters in scopes:
                if not isinstance(parameters, list):
                    continue
                for index, parameter in enumerate(parameters):
                    if not self._is_candidate(parameter, route, placeholders):
                        continue
                    found.append(_Occurrence(route, scope, index, len(parameters), parameter))
        return found

    def _is_candidate(self, parameter: Any, route: str, placeholders: set[str]) -> bool:
        if not isinstance(parameter, dict) or "$ref" in parameter:
            return False
        name = str(parameter.get("name") or "").strip()
        location = parse_location(parameter.get("in"))
        if not name or location is None:
            return False
        if location is ParameterLocation.PATH and name not in placeholders:
            warning(
                f"Path parameter '{name}' on {route} has no {{{name}}} placeholder; "
                "left inline"
            )
            return False
        return True

    @staticmethod
    def _matching_placeholder(occurrences: list[_Occurrence]) -> list[_Occurrence]:
        """Keep the path occurrences spelled exactly like the first one.

        The logical key folds case, but placeholders do not: ``{petId}`` and
        ``{petid}`` cannot share one component.
        """
        name = str(occurrences[0].parameter.get("name")).strip()
        kept: list[_Occurrence] = []
        for occurrence in occurrences:
            if name in route_placeholders(occurrence.route):
                kept.append(occurrence)
            else:
                warning(
                    f"Path parameter '{occurrence.parameter.get('name')}' on "
                    f"{occurrence.route} does not match the shared '{name}'; left inline"
                )
        return kept

    def _reserved_names(self, existing: dict[str, Any]) -> dict[ParameterLocation, set[str]]:
        used: dict[ParameterLocation, set[str]] = {loc: set() for loc in ParameterLocation}
        for name, content in existing.items():
            location = parse_location(content.get("in")) if isinstance(content, dict) else None
            if location is not None:
                used[location].add(str(name).lower())
        return used
