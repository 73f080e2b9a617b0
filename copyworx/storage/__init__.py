"""Local storage for CopyWorx projects.

Everything lives in one key-value engine as a JSON array of project
aggregates. The stores here are thin views over that blob:

    ProjectStore   projects, active project pointer, brand voice
    FolderStore    folder tree (acyclic, delete-when-empty)
    DocumentStore  documents and their version families
    PersonaStore   audience personas
    SnippetStore   reusable copy snippets
    LocalStorage   all of the above over one engine
"""

from .documents import DocumentStore
from .folders import FolderStore, is_circular_reference
from .local import LocalStorage
from .personas import PersonaStore, validate_persona_photo
from .projects import ProjectStore
from .snippets import SnippetStore

__all__ = [
    "DocumentStore",
    "FolderStore",
    "LocalStorage",
    "PersonaStore",
    "ProjectStore",
    "SnippetStore",
    "is_circular_reference",
    "validate_persona_photo",
]
