"""Rewrite in-document component references into relative file references.

The resolver runs once over a freshly built model. Each unit's content is
walked with :func:`specsplit.walk.rewrite_refs`; every
``#/components/<category>/<name>`` pointer (bare, or qualified with the
entrypoint file name) whose target exists in the model becomes the relative path from the referencing unit's directory to the
target's file. External URLs and references to split files are
left alone, which keeps a second run over the same model a no-op.

Two non-fatal situations are reported as warnings:

* a bare reference that matches several units (same category and name,
  different sub-categories) resolves to the first one in model insertion
  order;
* a reference to a component the model does not contain is left untouched,
  and the validator reports it.
"""

from __future__ import annotations

from typing import Any, Optional

from specsplit.modularization.entities import ComponentUnit, ModularizationModel
from specsplit.modularization.fixer import ReferenceFixer
from specsplit.output import debug, warning
from specsplit.walk import Location, format_location, rewrite_refs


class ReferenceResolver:
    """Resolve every component reference of a model in place."""

    def __init__(self, fixer: ReferenceFixer) -> None:
        self._fixer = fixer

    def resolve(self, model: ModularizationModel) -> int:
        """Rewrite references in every unit; return how many were rewritten."""
        count = 0
        for unit in model.components:
            count += self._resolve_content(
                model, unit.content, unit.directory, f"component {unit.label}"
            )
        for path_unit in model.paths:
            count += self._resolve_content(
                model, path_unit.content, path_unit.directory, f"path {path_unit.route}"
            )
        debug(f"Resolved {count} reference(s)")
        return count

    def _resolve_content(
        self, model: ModularizationModel, content: Any, directory: str, owner: str
    ) -> int:
        def _rewrite(ref: str, location: Location) -> Optional[str]:
            if self._fixer.is_external(ref):
                return None
            parsed = self._fixer.parse_component_ref(ref)
            if parsed is None:
                return None
            target = self._pick_target(model, parsed.category, parsed.name, ref, owner)
            if target is None:
                where = format_location(location) or "<root>"
                warning(f"Unknown reference target {ref} in {owner} at {where}")
                return None
            return self._fixer.relative_ref(directory, target)

        return rewrite_refs(content, _rewrite)

    def _pick_target(
        self,
        model: ModularizationModel,
        category: str,
        name: str,
        ref: str,
        owner: str,
    ) -> Optional[ComponentUnit]:
        candidates = model.find_components_by_category_and_name(category, name)
        if not candidates:
            return None
        if len(candidates) > 1:
            choices = ", ".join(c.relative_path for c in candidates)
            warning(
                f"Ambiguous reference {ref} in {owner} matches {choices}; "
                f"using {candidates[0].relative_path}"
            )
        return candidates[0]
