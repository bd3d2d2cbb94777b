"""Single-pass construction of the :class:`ModularizationModel`.

The builder is a pure function of (document, parameter extraction result,
configuration): it deep-copies everything it keeps and never touches the
filesystem, so it can be exercised entirely with in-memory fixtures.

Order of insertion matters to the resolver's ambiguity rule: components
declared by the document are inserted first, extracted parameters second.
"""

from __future__ import annotations

import copy
from typing import Any, Optional

from specsplit.models import (
    ComponentCategory,
    HTTPMethod,
    ModularizeConfig,
    OpenAPIDocument,
    ParameterExtractionResult,
)
from specsplit.modularization.classifier import ComponentSplitter
from specsplit.modularization.entities import (
    ComponentUnit,
    Entrypoint,
    ModularizationModel,
    PathUnit,
)
from specsplit.modularization.fixer import ReferenceFixer
from specsplit.naming import NameNormalizer
from specsplit.output import debug, step, warning

OPERATION_KEY_ORDER = (
    "operationId",
    "summary",
    "description",
    "tags",
    "externalDocs",
    "parameters",
    "requestBody",
    "responses",
    "callbacks",
    "deprecated",
    "security",
    "servers",
)

_HTTP_METHODS = tuple(m.value for m in HTTPMethod)
_CATEGORIES = tuple(c.value for c in ComponentCategory)


def reorder_operation(operation: dict[str, Any]) -> dict[str, Any]:
    """Return *operation* with its keys in canonical order, extras last."""
    ordered = {k: operation[k] for k in OPERATION_KEY_ORDER if k in operation}
    ordered.update((k, v) for k, v in operation.items() if k not in ordered)
    return ordered


class ModelBuilder:
    """Turn a normalized document into a modularization model.

    Args:
        normalizer: Shared naming engine.
        splitter: Classification and file naming.
        config: Full modularize config.
    """

    def __init__(
        self,
        normalizer: NameNormalizer,
        splitter: ComponentSplitter,
        config: ModularizeConfig,
    ) -> None:
        self._normalizer = normalizer
        self._splitter = splitter
        self._config = config
        self._extension = config.advanced.file_extension

    def build(
        self,
        document: OpenAPIDocument,
        parameters: Optional[ParameterExtractionResult] = None,
    ) -> ModularizationModel:
        """Build the model.

        Args:
            document: The document after response normalization/extraction.
            parameters: Shared parameters to insert and reference from paths.

        Raises:
            ModelIntegrityError: If two components share a composite key.
        """
        parameters = parameters or ParameterExtractionResult()
        model = ModularizationModel()

        self._add_components(document, model)
        self._add_extracted_parameters(parameters, model)
        self._add_paths(document, parameters, model)
        model.entrypoint = self._entrypoint(document)

        stats = model.stats
        debug(
            f"Model built: {stats.components_count} components, {stats.paths_count} paths"
        )
        return model

    def _add_components(self, document: OpenAPIDocument, model: ModularizationModel) -> None:
        for category, items in document.components.items():
            if category not in _CATEGORIES:
                if items:
                    warning(f"Skipping unsupported components section '{category}'")
                continue
            if not isinstance(items, dict):
                continue
            for name, content in items.items():
                sub_category = self._splitter.sub_category(category, name, content)
                self._insert(
                    model,
                    name=str(name),
                    category=category,
                    sub_category=sub_category,
                    content=copy.deepcopy(content),
                )

    def _add_extracted_parameters(
        self, parameters: ParameterExtractionResult, model: ModularizationModel
    ) -> None:
        category = ComponentCategory.PARAMETERS.value
        for extracted in parameters.units.values():
            self._insert(
                model,
                name=extracted.name,
                category=category,
                sub_category=extracted.location.value,
                content=copy.deepcopy(extracted.content),
            )

    def _insert(
        self,
        model: ModularizationModel,
        name: str,
        category: str,
        sub_category: Optional[str],
        content: Any,
    ) -> ComponentUnit:
        base = self._splitter.file_name(name, category, content)
        unit = ComponentUnit(
            name=name,
            category=category,
            sub_category=sub_category,
            content=content,
            file_name=base,
            extension=self._extension,
        )
        counter = 2
        while model.is_output_path_taken(unit.relative_path):
            unit.file_name = f"{base}{counter}"
            counter += 1
        if unit.file_name != base:
            warning(
                f"File name '{base}' is already used in {unit.directory}; "
                f"writing {unit.label} as '{unit.file_name}'"
            )
        model.add_component(unit)
        step(f"{unit.key} -> {unit.relative_path}")
        return unit

    def _add_paths(
        self,
        document: OpenAPIDocument,
        parameters: ParameterExtractionResult,
        model: ModularizationModel,
    ) -> None:
        for route, path_item in document.paths.items():
            if not isinstance(path_item, dict):
                continue
            content = self._process_path_item(
                route, copy.deepcopy(path_item), parameters, model
            )
            base = self._splitter.path_file_name(route)
            unit = PathUnit(route=route, content=content, file_name=base, extension=self._extension)
            counter = 2
            while model.is_output_path_taken(unit.relative_path):
                unit.file_name = f"{base}-{counter}"
                counter += 1
            if unit.file_name != base:
                warning(f"Path file '{base}' is already used; writing {route} as '{unit.file_name}'")
            model.add_path(unit)
            step(f"{route} -> {unit.relative_path}")

    def _process_path_item(
        self,
        route: str,
        path_item: dict[str, Any],
        parameters: ParameterExtractionResult,
        model: ModularizationModel,
    ) -> dict[str, Any]:
        slots = parameters.reference_map.get(route, {})

        if isinstance(path_item.get("parameters"), list):
            path_item["parameters"] = self._replace_parameters(
                path_item["parameters"], slots.get("parameters"), parameters, model
            )
        shared_path_refs = [
            p
            for p in path_item.get("parameters") or []
            if isinstance(p, dict) and "/path/" in str(p.get("$ref", ""))
        ]

        for method in list(path_item):
            operation = path_item[method]
            if method.lower() not in _HTTP_METHODS or not isinstance(operation, dict):
                continue
            if isinstance(operation.get("parameters"), list):
                operation["parameters"] = self._replace_parameters(
                    operation["parameters"], slots.get(method), parameters, model
                )
            if shared_path_refs:
                operation["parameters"] = merge_unique_refs(
                    operation.get("parameters") or [], shared_path_refs
                )
            if self._config.behavior.reorder_operations:
                path_item[method] = reorder_operation(operation)
        return path_item

    def _replace_parameters(
        self,
        items: list[Any],
        slots: Optional[list[Optional[str]]],
        parameters: ParameterExtractionResult,
        model: ModularizationModel,
    ) -> list[Any]:
        if not slots:
            return items
        replaced = []
        for index, item in enumerate(items):
            key = slots[index] if index < len(slots) else None
            extracted = parameters.units.get(key) if key else None
            unit = (
                model.find_component(
                    ComponentCategory.PARAMETERS.value,
                    extracted.location.value,
                    extracted.name,
                )
                if extracted
                else None
            )
            if unit is None:
                replaced.append(item)
            else:
                replaced.append({"$ref": ReferenceFixer.relative_ref("paths", unit)})
        return replaced

    def _entrypoint(self, document: OpenAPIDocument) -> Entrypoint:
        return Entrypoint(
            openapi=document.openapi,
            info=copy.deepcopy(document.info),
            servers=copy.deepcopy(document.servers),
            tags=copy.deepcopy(document.tags),
            security=copy.deepcopy(document.security),
            external_docs=copy.deepcopy(document.external_docs),
            extensions=copy.deepcopy(document.extensions),
            file_name=self._config.paths.main_file_name + self._extension,
        )


def merge_unique_refs(base: list[Any], extra: list[dict[str, Any]]) -> list[Any]:
    """Append the references in *extra* that *base* does not already hold."""
    seen = {p.get("$ref") for p in base if isinstance(p, dict) and p.get("$ref")}
    merged = list(base)
    for item in extra:
        ref = item.get("$ref")
        if ref and ref not in seen:
            merged.append(copy.deepcopy(item))
            seen.add(ref)
    return merged
