"""Write a validated modularization model to disk.

The writer is the only stage with filesystem side effects, and it commits
in two phases:

1. Every file (components, paths, entrypoint) is rendered into a staging
   directory created next to the destination, so it lives on the same
   filesystem.
2. Only when the whole tree is staged is it moved into place: with
   ``behavior.clean_output`` the destination is swapped for the staging
   tree; otherwise each staged file replaces its counterpart.

An ``OSError`` anywhere is reported as :class:`~specsplit.exceptions.WriteError`
and the staging directory is removed. A failure while staging leaves the
destination exactly as it was.
"""

from __future__ import annotations

import json
import os
import shutil
import tempfile
from pathlib import Path
from typing import Any

import yaml

from specsplit.exceptions import WriteError
from specsplit.models import ComponentCategory, ModularizeConfig
from specsplit.modularization.entities import ModularizationModel
from specsplit.output import debug, step


def dump_content(data: Any, extension: str) -> str:
    """Serialize *data* as JSON for ``.json`` files, YAML otherwise."""
    if extension == ".json":
        return json.dumps(data, indent=2, ensure_ascii=False) + "\n"
    return yaml.safe_dump(
        data, sort_keys=False, allow_unicode=True, width=float("inf")
    )


class ModularizationWriter:
    """Render a model into files under a destination directory."""

    def __init__(self, config: ModularizeConfig) -> None:
        self._config = config
        self._extension = config.advanced.file_extension

    def write(self, model: ModularizationModel, destination: str | Path) -> list[Path]:
        """Write every unit and the entrypoint under *destination*.

        Returns:
            The final paths of the written files, entrypoint last.

        Raises:
            WriteError: If any file cannot be staged or moved into place.
        """
        destination = Path(destination).resolve()
        staging: Path | None = None
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            staging = Path(
                tempfile.mkdtemp(prefix=f".{destination.name}.staging-", dir=destination.parent)
            )
            relative_files = self._stage(model, staging)
            if self._config.behavior.clean_output:
                self._swap(staging, destination)
                staging = None
            else:
                self._overlay(staging, relative_files, destination)
        except OSError as exc:
            raise WriteError(f"Failed to write output to {destination}: {exc}") from exc
        finally:
            if staging is not None and staging.exists():
                shutil.rmtree(staging, ignore_errors=True)

        written = [destination / rel for rel in relative_files]
        debug(f"Wrote {len(written)} file(s) to {destination}")
        return written

    def render_entrypoint(self, model: ModularizationModel) -> dict[str, Any]:
        entry = model.entrypoint
        document: dict[str, Any] = {"openapi": entry.openapi, "info": entry.info}
        if entry.servers is not None:
            document["servers"] = entry.servers
        if entry.tags is not None:
            document["tags"] = entry.tags
        if entry.security is not None:
            document["security"] = entry.security
        if entry.external_docs is not None:
            document["externalDocs"] = entry.external_docs

        document["paths"] = {
            unit.route: {"$ref": f"./{unit.relative_path}"} for unit in model.paths
        }

        schemes = model.components_by_category(ComponentCategory.SECURITY_SCHEMES.value)
        if schemes:
            document["components"] = {
                ComponentCategory.SECURITY_SCHEMES.value: {
                    unit.name: {"$ref": f"./{unit.relative_path}"} for unit in schemes
                }
            }
        document.update(entry.extensions)
        return document

    def _stage(self, model: ModularizationModel, root: Path) -> list[str]:
        files: list[str] = []
        for unit in model.components:
            self._write_file(root, unit.relative_path, dump_content(unit.content, self._extension))
            files.append(unit.relative_path)

        for path_unit in model.paths:
            text = dump_content(path_unit.content, self._extension)
            if self._extension != ".json":
                text = path_unit.header_comment + text
            self._write_file(root, path_unit.relative_path, text)
            files.append(path_unit.relative_path)

        entry_name = model.entrypoint.file_name
        self._write_file(
            root, entry_name, dump_content(self.render_entrypoint(model), self._extension)
        )
        files.append(entry_name)
        return files

    @staticmethod
    def _write_file(root: Path, relative: str, text: str) -> None:
        target = root / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(text, encoding="utf-8")
        step(f"staged {relative}")

    @staticmethod
    def _swap(staging: Path, destination: Path) -> None:
        backup: Path | None = None
        if destination.exists():
            backup = destination.with_name(f".{destination.name}.previous")
            if backup.exists():
                shutil.rmtree(backup)
            os.replace(destination, backup)
        try:
            os.replace(staging, destination)
        except OSError:
            if backup is not None:
                os.replace(backup, destination)
            raise
        if backup is not None:
            shutil.rmtree(backup, ignore_errors=True)

    @staticmethod
    def _overlay(staging: Path, relative_files: list[str], destination: Path) -> None:
        for relative in relative_files:
            target = destination / relative
            target.parent.mkdir(parents=True, exist_ok=True)
            os.replace(staging / relative, target)
