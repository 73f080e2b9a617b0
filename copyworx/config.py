"""Client configuration read from the environment (.env supported).

    COPYWORX_DATA_DIR          directory for the local key-value file
    COPYWORX_CLOUD_URL         cloud API root; empty means local only
    COPYWORX_CLOUD_API_KEY     bearer token for the cloud API
    COPYWORX_STORAGE_CAPACITY  local capacity in bytes (default 5MB)
    COPYWORX_STORAGE_MODE      cloud | local | hybrid
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import BaseModel

from copyworx.kv import DEFAULT_CAPACITY

StorageMode = Literal["cloud", "local", "hybrid"]

DEFAULT_DATA_DIR = Path("data")
LOCAL_STORE_FILENAME = "local-storage.json"


class Settings(BaseModel):
    data_dir: Path = DEFAULT_DATA_DIR
    cloud_url: str = ""
    cloud_api_key: str = ""
    storage_capacity: int = DEFAULT_CAPACITY
    storage_mode: StorageMode = "hybrid"

    @property
    def local_store_path(self) -> Path:
        return self.data_dir / LOCAL_STORE_FILENAME

    @property
    def cloud_configured(self) -> bool:
        return bool(self.cloud_url)


def load_settings(env_file: Path | None = None) -> Settings:
    """Build Settings from the environment after loading ``env_file`` (or ./.env)."""
    load_dotenv(env_file or Path(".env"))
    return Settings(
        data_dir=Path(os.getenv("COPYWORX_DATA_DIR", str(DEFAULT_DATA_DIR))),
        cloud_url=os.getenv("COPYWORX_CLOUD_URL", ""),
        cloud_api_key=os.getenv("COPYWORX_CLOUD_API_KEY", ""),
        storage_capacity=int(os.getenv("COPYWORX_STORAGE_CAPACITY", str(DEFAULT_CAPACITY))),
        storage_mode=os.getenv("COPYWORX_STORAGE_MODE", "hybrid"),
    )
