"""Storage collaborators: property store and per-app data directories."""

from appjson.store.datadir import DataDirectory, FileDataDirectory
from appjson.store.properties import GLOBAL_APP, FilePropertyStore, PropertyStore

__all__ = [
    "DataDirectory",
    "FileDataDirectory",
    "FilePropertyStore",
    "GLOBAL_APP",
    "PropertyStore",
]
