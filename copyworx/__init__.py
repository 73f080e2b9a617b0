"""CopyWorx storage core: projects, folders, documents, personas and snippets.

Local JSON storage is always available; a cloud mirror is used first when
configured, with the local store as cache and fallback.
"""
