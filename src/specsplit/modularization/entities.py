"""The in-memory modularization model.

A :class:`ModularizationModel` is the aggregate built by the model builder:

* an ordered :class:`CompositeKey` -> :class:`ComponentUnit` index;
* an ordered route -> :class:`PathUnit` map;
* the :class:`Entrypoint` metadata written to the top-level file.

Units are plain dataclasses rather than frozen models because the resolver
rewrites the ``$ref`` strings inside their content in place. Everything
before the resolver treats them as read-only, and the writer consumes the
model once.

The composite key is what lets a ``path`` parameter and a ``query``
parameter both named ``id`` live side by side: identity is
``(category, sub_category, lowercased name)``, never the bare name.
"""

from __future__ import annotations

import posixpath
from dataclasses import dataclass, field
from typing import Any, NamedTuple, Optional

from specsplit.exceptions import ModelIntegrityError
from specsplit.models import ComponentCategory
from specsplit.naming import route_placeholders


class CompositeKey(NamedTuple):
    """Collision-free identity of a component unit."""

    category: str
    sub_category: Optional[str]
    name: str

    @classmethod
    def of(cls, category: str, sub_category: Optional[str], name: str) -> CompositeKey:
        """Build a key, lowercasing *name*."""
        return cls(str(category), sub_category or None, name.lower())

    def __str__(self) -> str:
        if self.sub_category:
            return f"{self.category}:{self.sub_category}:{self.name}"
        return f"{self.category}:{self.name}"


@dataclass
class ComponentUnit:
    """One named component destined for its own file.

    Attributes:
        name: Logical name, as referenced from ``#/components/<category>/``.
        category: The ``components`` section, e.g. ``schemas``.
        sub_category: Parameter location or schema bucket, if any.
        content: The component definition (mutated by the resolver).
        file_name: Output file base name, without extension.
        extension: Output file extension, e.g. ``.yaml``.
    """

    name: str
    category: str
    sub_category: Optional[str]
    content: Any
    file_name: str
    extension: str = ".yaml"

    @property
    def key(self) -> CompositeKey:
        return CompositeKey.of(self.category, self.sub_category, self.name)

    @property
    def directory(self) -> str:
        """Output directory relative to the destination root."""
        if self.sub_category:
            return posixpath.join("components", self.category, self.sub_category)
        return posixpath.join("components", self.category)

    @property
    def relative_path(self) -> str:
        return posixpath.join(self.directory, self.file_name + self.extension)

    @property
    def label(self) -> str:
        """Human-readable identity used in diagnostics (``schemas/Pet``)."""
        return f"{self.category}/{self.name}"


@dataclass
class PathUnit:
    """One path item destined for its own file under ``paths/``."""

    route: str
    content: dict[str, Any]
    file_name: str
    extension: str = ".yaml"

    @property
    def directory(self) -> str:
        return "paths"

    @property
    def relative_path(self) -> str:
        return posixpath.join(self.directory, self.file_name + self.extension)

    @property
    def path_params(self) -> list[str]:
        return route_placeholders(self.route)

    @property
    def header_comment(self) -> str:
        rule = "# " + "=" * 70
        return f"{rule}\n# Path: {self.route}\n{rule}\n"


@dataclass
class Entrypoint:
    """Document-level metadata written to the top-level file."""

    openapi: str = ""
    info: dict[str, Any] = field(default_factory=dict)
    servers: Optional[list[Any]] = None
    tags: Optional[list[Any]] = None
    security: Optional[list[Any]] = None
    external_docs: Optional[dict[str, Any]] = None
    extensions: dict[str, Any] = field(default_factory=dict)
    file_name: str = "main.yaml"


@dataclass
class ModelStats:
    components_count: int
    paths_count: int
    components_by_category: dict[str, int]


class ModularizationModel:
    """Composite-key indexed collection of component and path units."""

    def __init__(self) -> None:
        self._components: dict[CompositeKey, ComponentUnit] = {}
        self._paths: dict[str, PathUnit] = {}
        self._output_paths: dict[str, str] = {}
        self.entrypoint = Entrypoint()

    # --- Mutation ---

    def add_component(self, unit: ComponentUnit) -> ComponentUnit:
        """Index *unit* by its composite key.

        Raises:
            ModelIntegrityError: If the key or the output path is already
                taken. A collision is never resolved by overwriting.
        """
        key = unit.key
        if key in self._components:
            existing = self._components[key]
            raise ModelIntegrityError(
                f"Duplicate component '{key}': '{existing.name}' and '{unit.name}'"
            )
        self._claim_output_path(unit.relative_path, unit.label)
        self._components[key] = unit
        return unit

    def add_path(self, unit: PathUnit) -> PathUnit:
        """Index *unit* by its route template.

        Raises:
            ModelIntegrityError: If the route or the output path is taken.
        """
        if unit.route in self._paths:
            raise ModelIntegrityError(f"Duplicate path '{unit.route}'")
        self._claim_output_path(unit.relative_path, f"path {unit.route}")
        self._paths[unit.route] = unit
        return unit

    def _claim_output_path(self, relative_path: str, owner: str) -> None:
        folded = relative_path.lower()
        if folded in self._output_paths:
            raise ModelIntegrityError(
                f"Output path '{relative_path}' is claimed by both "
                f"{self._output_paths[folded]} and {owner}"
            )
        self._output_paths[folded] = owner

    # --- Lookup ---

    @property
    def components(self) -> list[ComponentUnit]:
        return list(self._components.values())

    @property
    def paths(self) -> list[PathUnit]:
        return list(self._paths.values())

    def find_component(
        self, category: str, sub_category: Optional[str], name: str
    ) -> Optional[ComponentUnit]:
        return self._components.get(CompositeKey.of(category, sub_category, name))

    def find_components_by_category_and_name(
        self, category: str, name: str
    ) -> list[ComponentUnit]:
        """All units of *category* named *name* (any sub-category), in insertion order.

        Names are matched exactly first; a case-insensitive match is only
        used when nothing matches exactly.
        """
        same_category = [u for u in self._components.values() if u.category == category]
        exact = [u for u in same_category if u.name == name]
        if exact:
            return exact
        folded = name.lower()
        return [u for u in same_category if u.name.lower() == folded]

    def components_by_category(self, category: str) -> list[ComponentUnit]:
        return [u for u in self._components.values() if u.category == category]

    def find_path(self, route: str) -> Optional[PathUnit]:
        return self._paths.get(route)

    def is_output_path_taken(self, relative_path: str) -> bool:
        return relative_path.lower() in self._output_paths

    def is_empty(self) -> bool:
        return not self._components and not self._paths

    @property
    def stats(self) -> ModelStats:
        by_category: dict[str, int] = {c.value: 0 for c in ComponentCategory}
        for unit in self._components.values():
            by_category[unit.category] = by_category.get(unit.category, 0) + 1
        return ModelStats(
            components_count=len(self._components),
            paths_count=len(self._paths),
            components_by_category=by_category,
        )
