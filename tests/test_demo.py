from backend import storage
from backend.demo import create_demo_data


def test_demo_data_is_fresh_and_complete():
    storage.create_project("Leftover")
    create_demo_data()

    names = sorted(p["name"] for p in storage.list_projects())
    assert names == ["Acme Launch", "Side Project"]

    acme = next(p for p in storage.list_projects() if p["name"] == "Acme Launch")
    assert storage.get_brand_voice(acme["id"])["brand_name"] == "Acme"
    assert len(storage.list_folders(acme["id"])) == 3
    brief = storage.list_documents(acme["id"], "Launch Brief")
    assert sorted(d["version"] for d in brief) == [1, 2]
    assert storage.get_user_settings()["active_project_id"] == acme["id"]
