"""
lager.json Data Loader Service.
Loads the inventory snapshot into a pandas DataFrame of canonical rows.
"""

import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import pandas as pd

from app.core.config import settings
from app.services.lager_snapshot import read_snapshot, to_rows

logger = logging.getLogger(__name__)

ROW_COLUMNS = [
    "id",
    "mk",
    "artikelnr",
    "location",
    "status",
    "lagerplats",
    "benamning",
    "benamning2",
    "extrainfo",
    "bild",
    "paket",
    "fordon",
    "alternativart",
    "article_data",
    "created_at",
    "updated_at",
]


class LagerDataLoader:
    """Loads and caches the snapshot; re-reads it when the file changes"""

    _instance = None
    _frame: Optional[pd.DataFrame] = None
    _loaded_path: Optional[str] = None
    _loaded_mtime: Optional[float] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(LagerDataLoader, cls).__new__(cls)
        return cls._instance

    @staticmethod
    def resolve_path(path: Optional[str] = None) -> Path:
        return Path(path or settings.LAGER_JSON_PATH)

    def load_frame(self, path: Optional[str] = None) -> pd.DataFrame:
        """
        Load snapshot rows as a DataFrame.

        Returns:
            DataFrame with one row per (mk, artikelnr, location) and ROW_COLUMNS columns

        Raises:
            FileNotFoundError: snapshot file is missing
            SnapshotValidationError: snapshot content is invalid
        """
        file_path = self.resolve_path(path)
        mtime = os.path.getmtime(file_path)

        if (
            self._frame is not None
            and self._loaded_path == str(file_path)
            and self._loaded_mtime == mtime
        ):
            return self._frame

        rows = to_rows(read_snapshot(file_path))
        frame = pd.DataFrame(rows, columns=ROW_COLUMNS)

        # The snapshot has no per-row timestamps; the file time stands in for both
        snapshot_time = datetime.fromtimestamp(mtime, tz=timezone.utc).replace(tzinfo=None)
        frame["created_at"] = pd.Timestamp(snapshot_time)
        frame["updated_at"] = pd.Timestamp(snapshot_time)

        duplicates = frame["id"].duplicated()
        if duplicates.any():
            logger.warning("Dropping %d duplicate (mk, artikelnr, location) rows", int(duplicates.sum()))
            frame = frame[~duplicates]

        frame = frame.reset_index(drop=True)
        logger.info("Loaded %d inventory rows from %s", len(frame), file_path)

        self._frame = frame
        self._loaded_path = str(file_path)
        self._loaded_mtime = mtime
        return frame

    def reload(self):
        """Force a re-read on next access"""
        self._frame = None
        self._loaded_path = None
        self._loaded_mtime = None


# Singleton instance
lager_loader = LagerDataLoader()
