"""
level_source.py
---------------
Where level data comes from: an indexed catalog, or an encoded blob.

Responsibilities
----------------
- Load the level list from config (inline levels or per-level files)
- Provide O(1) level lookup by index
- Decode / encode level blobs (JSON text, as saved by the editor)
"""

import json
from typing import Any, Dict, List

from level_loop.core.services.config_manager import load_config
from level_loop.core.debug.debug_logger import DebugLogger
from level_loop.systems.level.errors import LevelDecodeError, LevelNotFound


# ===========================================================
# Blob Codec
# ===========================================================

def decode_level(blob: str) -> Dict[str, Any]:
    """
    Decode an encoded level blob.

    Args:
        blob: JSON text describing one level

    Returns:
        dict: Level data

    Raises:
        LevelDecodeError: blob is not JSON, or not a JSON object
    """
    try:
        level = json.loads(blob)
    except json.JSONDecodeError as e:
        raise LevelDecodeError(f"Level blob is not valid JSON: {e}") from e

    if not isinstance(level, dict):
        raise LevelDecodeError(f"Level blob must hold an object, got {type(level).__name__}")
    return level


def encode_level(level: Dict[str, Any]) -> str:
    """Encode level data into a blob accepted by decode_level()."""
    return json.dumps(level, sort_keys=True, separators=(",", ":"))


# ===========================================================
# Level Catalog
# ===========================================================

class LevelCatalog:
    """
    Ordered level list with lookup by index.

    Config format:
        {
            "levels": [
                {"name": "Tutorial", "ncols": 10, ...},     # inline level
                {"path": "levels/cave.json", "name": "Cave"}  # loaded on demand
            ]
        }
    """

    def __init__(self, levels: List[Dict[str, Any]] = None):
        self._entries: List[Dict[str, Any]] = list(levels or [])
        self._cache: Dict[int, Dict[str, Any]] = {}

    @classmethod
    def load(cls, config_path: str = "levels.json") -> "LevelCatalog":
        """
        Build a catalog from a config file.

        Args:
            config_path: Levels config (.json / .yaml / .py)
        """
        DebugLogger.init_entry("Loading Level Catalog")
        data = load_config(config_path, {"levels": []})

        levels = data.get("levels", [])
        if not isinstance(levels, list):
            DebugLogger.warn(
                f"[LevelCatalog] Invalid levels format: {type(levels)}. Expected list.",
                category="loading"
            )
            levels = []

        catalog = cls(levels)
        DebugLogger.init_sub(f"Registered {len(catalog)} levels")
        return catalog

    # ===========================================================
    # Lookup
    # ===========================================================

    def get_by_index(self, index: int) -> Dict[str, Any]:
        """
        Level data for index.

        Raises:
            LevelNotFound: index out of range
        """
        if not isinstance(index, int) or not 0 <= index < len(self._entries):
            raise LevelNotFound(f"No level at index {index!r} ({len(self._entries)} registered)")

        if index not in self._cache:
            self._cache[index] = self._materialize(self._entries[index])
        return self._cache[index]

    def decode(self, blob: str) -> Dict[str, Any]:
        return decode_level(blob)

    def names(self) -> List[str]:
        return [entry.get("name", f"Level {i}") for i, entry in enumerate(self._entries)]

    def __len__(self) -> int:
        return len(self._entries)

    # ===========================================================
    # Helpers
    # ===========================================================

    @staticmethod
    def _materialize(entry: Dict[str, Any]) -> Dict[str, Any]:
        """Load a path entry from disk; inline entries are used as-is."""
        path = entry.get("path")
        if not path:
            return entry

        data = load_config(path, strict=True)
        extra = {key: value for key, value in entry.items() if key != "path"}
        data.update(extra)
        DebugLogger.system(f"Level file loaded: {path}", category="level")
        return data
