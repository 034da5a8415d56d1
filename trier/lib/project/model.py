"""Capability interface onto the host project model.

The engine only ever adds, finds, tags and deletes items. Hosts (an IDE, a
build system, the JSON project used by the CLI) implement ``ProjectModel``;
none of the calls are assumed to be transactional.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from trier.lib.output.models import BuildAction


@dataclass
class ProjectItem:
    """A file tracked by a project, tagged with its build action."""

    path: str
    project: str
    build_action: BuildAction | None = None


class ProjectModel(ABC):
    """Narrow view of a host project used by the reconciler."""

    name: str
    source_extension: str = ".cs"

    @abstractmethod
    def find_item(self, path: str) -> ProjectItem | None:
        """Return this project's item whose full path equals *path*, if any."""

    @abstractmethod
    def add_item_from_file(self, path: str) -> ProjectItem:
        """Register the existing file at *path* as a project item."""

    @abstractmethod
    def delete_item(self, item: ProjectItem, *, keep_file: bool = False) -> None:
        """Remove *item* from its project and, unless *keep_file*, delete its file."""

    @abstractmethod
    def set_item_build_action(self, item: ProjectItem, action: BuildAction) -> None:
        """Set the item-type metadata of *item*."""

    @abstractmethod
    def find_item_in_solution(self, path: str) -> ProjectItem | None:
        """Search every project of the enclosing solution for *path*."""
