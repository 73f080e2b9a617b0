from pathlib import Path

from copyworx.config import load_settings
from copyworx.kv import DEFAULT_CAPACITY


def test_defaults(monkeypatch, tmp_path):
    for name in ("COPYWORX_DATA_DIR", "COPYWORX_CLOUD_URL", "COPYWORX_CLOUD_API_KEY",
                 "COPYWORX_STORAGE_CAPACITY", "COPYWORX_STORAGE_MODE"):
        monkeypatch.delenv(name, raising=False)
    settings = load_settings(tmp_path / "missing.env")
    assert settings.data_dir == Path("data")
    assert settings.storage_capacity == DEFAULT_CAPACITY
    assert settings.storage_mode == "hybrid"
    assert not settings.cloud_configured


def test_env_file(monkeypatch, tmp_path):
    for name in ("COPYWORX_DATA_DIR", "COPYWORX_CLOUD_URL", "COPYWORX_STORAGE_MODE"):
        monkeypatch.delenv(name, raising=False)
    env = tmp_path / ".env"
    env.write_text(
        f"COPYWORX_DATA_DIR={tmp_path}\n"
        "COPYWORX_CLOUD_URL=http://localhost:13013\n"
        "COPYWORX_STORAGE_MODE=local\n"
    )
    settings = load_settings(env)
    assert settings.local_store_path == tmp_path / "local-storage.json"
    assert settings.cloud_configured
    assert settings.storage_mode == "local"
    for name in ("COPYWORX_DATA_DIR", "COPYWORX_CLOUD_URL", "COPYWORX_STORAGE_MODE"):
        monkeypatch.delenv(name, raising=False)
