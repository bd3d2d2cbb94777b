"""Post-resolution integrity check: the gate before anything is written."""

from __future__ import annotations

from typing import Any, Optional

from specsplit.models import ValidationResult
from specsplit.modularization.entities import ModularizationModel
from specsplit.modularization.fixer import ReferenceFixer
from specsplit.walk import format_location, iter_refs

IN_DOCUMENT_PREFIX = "#"


class ModelValidator:
    """Report references left in the in-document scheme and missing metadata.

    Args:
        fixer: Recognizes entrypoint-qualified component references
            (``main.yaml#/components/...``), which are as unresolved as a bare
            ``#/...`` pointer once the entrypoint no longer holds components.
    """

    def __init__(self, fixer: Optional[ReferenceFixer] = None) -> None:
        self._fixer = fixer or ReferenceFixer()

    def validate(self, model: ModularizationModel) -> ValidationResult:
        errors: list[str] = []

        if model.is_empty():
            errors.append("Model is empty: no components and no paths")

        entrypoint = model.entrypoint
        if not str(entrypoint.openapi or "").strip():
            errors.append("Entrypoint is missing 'openapi'")
        if not entrypoint.info:
            errors.append("Entrypoint is missing 'info'")
        else:
            for field in ("title", "version"):
                if not str(entrypoint.info.get(field) or "").strip():
                    errors.append(f"Entrypoint is missing 'info.{field}'")

        unresolved = 0
        for unit in model.components:
            unresolved += self._collect(
                unit.content, f"Component {unit.category}/{unit.name}", errors
            )
        for path_unit in model.paths:
            unresolved += self._collect(path_unit.content, f"Path {path_unit.route}", errors)

        return ValidationResult(valid=not errors, errors=errors, unresolved=unresolved)

    def is_unresolved(self, ref: str) -> bool:
        return ref.startswith(IN_DOCUMENT_PREFIX) or (
            self._fixer.parse_component_ref(ref) is not None
        )

    def _collect(self, content: Any, context: str, errors: list[str]) -> int:
        count = 0
        for location, holder in iter_refs(content):
            ref = holder["$ref"]
            if not self.is_unresolved(ref):
                continue
            # The holder's own location; "$ref" itself is implied.
            where = format_location(location)
            label = f"{context}.{where}" if where else context
            errors.append(f"Unresolved reference in {label}: {ref}")
            count += 1
        return count
