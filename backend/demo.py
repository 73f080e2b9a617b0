"""Create demo projects for development/testing."""

from backend import storage
from backend.storage.core import TABLES

DEMO_PROJECTS = [
    {
        "name": "Acme Launch",
        "brand_voice": {
            "brand_name": "Acme",
            "brand_tone": "Confident, plain-spoken, a little playful",
            "approved_phrases": ["Built to last", "No fine print"],
            "forbidden_words": ["synergy", "disrupt"],
            "brand_values": ["Honesty", "Craft"],
            "mission_statement": "Tools that do exactly what they say.",
        },
        "folders": [("Campaigns", None), ("Email", "Campaigns"), ("Web", None)],
        "documents": [
            ("Launch Brief", "Campaigns", "<p>Acme's new anvil ships in March.</p>"),
            ("Welcome Email", "Email", "<h1>Welcome!</h1><p>Thanks for joining Acme.</p>"),
        ],
        "personas": [
            {
                "name": "Workshop Wes",
                "demographics": "35-50, owns a small fabrication shop",
                "psychographics": "Values durability over price",
                "pain_points": "Tools that break mid-job",
                "language_patterns": "Short, practical, skeptical of hype",
                "goals": "Finish jobs on time",
            },
        ],
        "snippets": [
            {"name": "Sign-off", "content": "<p>Built to last. No fine print.</p>", "tags": ["footer"]},
        ],
    },
    {"name": "Side Project"},
]


def create_demo_data() -> None:
    """Wipe existing tables and create fresh demo data."""
    data = storage.data_dir()
    for table in TABLES:
        (data / f"{table}.json").unlink(missing_ok=True)
    (data / "user_settings.json").unlink(missing_ok=True)

    first_id = None
    for entry in DEMO_PROJECTS:
        project = storage.create_project(entry["name"])
        first_id = first_id or project["id"]
        if "brand_voice" in entry:
            storage.save_brand_voice(project["id"], entry["brand_voice"])

        folder_ids: dict[str, str] = {}
        for name, parent in entry.get("folders", []):
            folder = storage.create_folder(project["id"], name, folder_ids.get(parent) if parent else None)
            folder_ids[name] = folder["id"]

        for title, folder, content in entry.get("documents", []):
            doc = storage.create_document(
                {"project_id": project["id"], "base_title": title, "content": content,
                 "folder_id": folder_ids.get(folder)}
            )
            storage.create_document(
                {"project_id": project["id"], "base_title": title, "content": content + "<p>Revised.</p>",
                 "version": 2, "parent_version_id": doc["id"], "folder_id": doc["folder_id"]}
            )

        for persona in entry.get("personas", []):
            storage.create_persona(project["id"], persona)
        for snippet in entry.get("snippets", []):
            storage.create_snippet(project["id"], snippet)

    storage.update_user_settings({"active_project_id": first_id})
