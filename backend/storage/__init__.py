"""File-based JSON tables behind the cloud API.

Data layout:
  data/
    projects.json        Project rows (id, name, timestamps)
    brand_voices.json    At most one row per project
    personas.json        Persona rows
    folders.json         Folder rows (parent_folder_id None = project root)
    documents.json       Document rows, metadata inline
    snippets.json        Snippet rows
    user_settings.json   Active project id and free-form settings

Rows are snake_case and carry their project_id. Nested project trees exist
only in sync responses and migrate requests.

Single tenant: there is no user column, authentication stays in front of
this service.
"""

# Re-export all public symbols so `from backend import storage` keeps working.

from .core import data_dir, init_storage  # noqa: F401

from .projects import (  # noqa: F401
    create_project,
    delete_brand_voice,
    delete_project,
    get_brand_voice,
    get_project,
    get_user_settings,
    list_projects,
    save_brand_voice,
    update_project,
    update_user_settings,
)

from .documents import (  # noqa: F401
    create_document,
    delete_document,
    get_document,
    list_documents,
    update_document,
)

from .folders import (  # noqa: F401
    create_folder,
    delete_folder,
    get_folder,
    list_folders,
    update_folder,
)

from .personas import (  # noqa: F401
    create_persona,
    delete_persona,
    get_persona,
    list_personas,
    update_persona,
)

from .snippets import (  # noqa: F401
    create_snippet,
    delete_snippet,
    get_snippet,
    increment_usage,
    list_snippets,
    update_snippet,
)

from .sync import build_snapshot, migrate_projects  # noqa: F401
