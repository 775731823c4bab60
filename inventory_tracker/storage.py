import json
import logging
import os
from pathlib import Path
from typing import Any

from .errors import PersistenceError

logger = logging.getLogger(__name__)


class JsonStore:
    """
    Key-value persistence: one JSON file per collection key, each holding an
    ordered list of records. A collection that was never written reads as empty.
    """

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)

    def path_for(self, collection: str) -> Path:
        return self.data_dir / f"{collection}.json"

    def read(self, collection: str) -> list[dict[str, Any]]:
        path = self.path_for(collection)
        if not path.exists():
            return []
        try:
            with open(path, "r", encoding="utf-8") as f:
                records = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise PersistenceError(f"Could not read collection '{collection}': {e}") from e

        if records is None:
            return []
        if not isinstance(records, list):
            raise PersistenceError(
                f"Collection '{collection}' must hold a list, found {type(records).__name__}"
            )
        return records

    def write_all(self, collection: str, records: list[dict[str, Any]]) -> None:
        self.write_many({collection: records})

    def write_many(self, batches: dict[str, list[dict[str, Any]]]) -> None:
        """
        Writes several collections as one unit. Every file is staged first; if
        staging or any commit step fails, files already committed are put back
        to their previous content and PersistenceError is raised.
        """
        staged: dict[str, Path] = {}
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            for collection, records in batches.items():
                tmp_path = self.path_for(collection).with_suffix(".json.tmp")
                staged[collection] = tmp_path
                with open(tmp_path, "w", encoding="utf-8") as f:
                    json.dump(records, f, indent=2)
        except (OSError, TypeError, ValueError) as e:
            self._discard(staged.values())
            raise PersistenceError(f"Could not stage {', '.join(batches)}: {e}") from e

        previous = {c: self._snapshot(self.path_for(c)) for c in staged}
        committed: list[str] = []
        try:
            for collection, tmp_path in staged.items():
                os.replace(tmp_path, self.path_for(collection))
                committed.append(collection)
        except OSError as e:
            logger.error(f"❌ Commit failed after {committed}; restoring previous files.")
            for collection in committed:
                self._restore(self.path_for(collection), previous[collection])
            self._discard(p for c, p in staged.items() if c not in committed)
            raise PersistenceError(f"Could not write {', '.join(batches)}: {e}") from e

        logger.debug(f"Persisted collections: {', '.join(committed)}")

    @staticmethod
    def _snapshot(path: Path) -> bytes | None:
        return path.read_bytes() if path.exists() else None

    @staticmethod
    def _restore(path: Path, content: bytes | None) -> None:
        if content is None:
            path.unlink(missing_ok=True)
        else:
            path.write_bytes(content)

    @staticmethod
    def _discard(paths) -> None:
        for path in paths:
            Path(path).unlink(missing_ok=True)
