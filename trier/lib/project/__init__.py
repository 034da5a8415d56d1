"""Project model boundary and in-process implementations."""

from trier.lib.project.model import ProjectItem, ProjectModel
from trier.lib.project.memory import InMemoryProject, InMemorySolution, JsonProject

__all__ = [
    "ProjectItem",
    "ProjectModel",
    "InMemoryProject",
    "InMemorySolution",
    "JsonProject",
]
