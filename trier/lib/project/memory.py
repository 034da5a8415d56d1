"""In-process project models: an in-memory solution and a JSON-backed project."""

from __future__ import annotations

import json
import logging
import os
import threading
from pathlib import Path

from trier.errors import ProjectModelError
from trier.lib.output.models import BuildAction
from trier.lib.output.multiplexer import path_key
from trier.lib.output.writer import atomic_write_bytes
from trier.lib.project.model import ProjectItem, ProjectModel

logger = logging.getLogger("lib.project.memory")


class InMemorySolution:
    """A set of projects sharing one item index for solution-wide lookups."""

    def __init__(self) -> None:
        self._projects: dict[str, InMemoryProject] = {}

    def attach(self, project: InMemoryProject) -> None:
        if project.name in self._projects:
            raise ValueError(f"Project '{project.name}' already exists in solution")
        self._projects[project.name] = project

    def get_project(self, name: str) -> InMemoryProject | None:
        return self._projects.get(name)

    def list_projects(self) -> list[InMemoryProject]:
        return list(self._projects.values())

    def find_item(self, path: str) -> ProjectItem | None:
        for project in self._projects.values():
            item = project.find_item(path)
            if item is not None:
                return item
        return None


class InMemoryProject(ProjectModel):
    """Project model held entirely in memory.

    Every mutating call is appended to ``mutations`` as a tuple, which lets
    callers check exactly what a reconciliation changed.

    Args:
        name: Project name, recorded on every item.
        solution: Solution to join; a private one is created if omitted.
        source_extension: Host language source extension.
        require_files: Reject ``add_item_from_file`` for missing files.
        delete_files: Remove the file from disk when an item is deleted.
    """

    def __init__(
        self,
        name: str = "project",
        *,
        solution: InMemorySolution | None = None,
        source_extension: str = ".cs",
        require_files: bool = True,
        delete_files: bool = True,
    ) -> None:
        self.name = name
        self.source_extension = source_extension
        self.require_files = require_files
        self.delete_files = delete_files
        self.solution = solution or InMemorySolution()
        self.solution.attach(self)
        self.mutations: list[tuple[str, ...]] = []
        self._items: dict[str, ProjectItem] = {}
        self._lock = threading.Lock()

    # -- queries ---------------------------------------------------------------

    def find_item(self, path: str) -> ProjectItem | None:
        with self._lock:
            return self._items.get(path_key(path))

    def find_item_in_solution(self, path: str) -> ProjectItem | None:
        return self.solution.find_item(path)

    def list_items(self) -> list[ProjectItem]:
        with self._lock:
            return list(self._items.values())

    # -- mutations -------------------------------------------------------------

    def add_item_from_file(self, path: str) -> ProjectItem:
        if self.require_files and not os.path.isfile(path):
            raise ProjectModelError(f"Cannot add missing file to project '{self.name}': {path}")

        with self._lock:
            key = path_key(path)
            item = self._items.get(key)
            if item is None:
                item = ProjectItem(path=path, project=self.name)
                self._items[key] = item
                self.mutations.append(("add", path))
        self._changed()
        return item

    def set_item_build_action(self, item: ProjectItem, action: BuildAction) -> None:
        with self._lock:
            owned = self._items.get(path_key(item.path))
            if owned is None:
                raise ProjectModelError(f"Item is not part of project '{self.name}': {item.path}")
            owned.build_action = action
            item.build_action = action
            self.mutations.append(("set", item.path, action.value))
        self._changed()

    def delete_item(self, item: ProjectItem, *, keep_file: bool = False) -> None:
        with self._lock:
            if self._items.pop(path_key(item.path), None) is None:
                raise ProjectModelError(f"Item is not part of project '{self.name}': {item.path}")
            self.mutations.append(("delete", item.path))
        if self.delete_files and not keep_file:
            Path(item.path).unlink(missing_ok=True)
        self._changed()

    def _changed(self) -> None:
        """Hook called after every successful mutation."""

    # -- loading ---------------------------------------------------------------

    def _restore(self, items: list[ProjectItem]) -> None:
        """Replace the item index without recording mutations."""
        with self._lock:
            self._items = {path_key(i.path): i for i in items}


class JsonProject(InMemoryProject):
    """Project model persisted to a JSON file.

    The file is rewritten atomically after every mutation::

        {"name": "app", "source_extension": ".cs",
         "items": [{"path": "/abs/gen.cs", "build_action": "Compile"}]}
    """

    def __init__(
        self,
        path: Path,
        *,
        name: str | None = None,
        source_extension: str = ".cs",
        solution: InMemorySolution | None = None,
    ) -> None:
        self.path = Path(path)
        self._save_lock = threading.Lock()
        data = self._read()
        super().__init__(
            name or data.get("name") or self.path.stem,
            solution=solution,
            source_extension=data.get("source_extension", source_extension),
        )
        self._restore(
            [
                ProjectItem(
                    path=entry["path"],
                    project=self.name,
                    build_action=(
                        BuildAction.parse(entry["build_action"])
                        if entry.get("build_action")
                        else None
                    ),
                )
                for entry in data.get("items", [])
            ]
        )

    def _read(self) -> dict:
        """Load project state from disk; a missing file is an empty project."""
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            raise ProjectModelError(f"Failed to load project file {self.path}: {e}") from e
        logger.info("Loaded %d items from %s", len(data.get("items", [])), self.path)
        return data

    def _changed(self) -> None:
        self.save()

    def save(self) -> None:
        """Save project state to disk atomically.

        The snapshot and the write happen under one lock, so the last save to
        finish always carries every mutation made before it started.
        """
        with self._save_lock:
            data = {
                "name": self.name,
                "source_extension": self.source_extension,
                "items": [
                    {
                        "path": item.path,
                        "build_action": item.build_action.value if item.build_action else None,
                    }
                    for item in self.list_items()
                ],
            }
            atomic_write_bytes(self.path, json.dumps(data, indent=2).encode("utf-8"))
