"""
lager.json snapshot reading, sanitizing and validation.
Shared by the JSON-backed query engine and the seed/sync scripts.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Union

from pydantic import ValidationError

from app.schemas.lager import LagerItem, LagerSnapshot

logger = logging.getLogger(__name__)

ALLOWED_KEYS = (
    "MK",
    "Artikelnr",
    "Benämning",
    "Benämning2",
    "Status",
    "ExtraInfo",
    "Lagerplats",
    "Bild",
    "Paket",
    "Fordon",
    "AlternativArt",
)

# Spellings seen in older exports
KEY_ALIASES = {
    "mk": "MK",
    "Märkeskod": "MK",
    "märkeskod": "MK",
    "Artikelnummer": "Artikelnr",
    "artikelnummer": "Artikelnr",
    "artikelnr": "Artikelnr",
    "Benamning": "Benämning",
    "Benamning2": "Benämning2",
    "benamning": "Benämning",
    "benamning2": "Benämning2",
    "status": "Status",
    "Extrainfo": "ExtraInfo",
    "lagerplats": "Lagerplats",
}

MAX_REPORTED_ERRORS = 10


class SnapshotValidationError(ValueError):
    """Raised when a snapshot does not match the expected structure"""

    def __init__(self, message: str, errors: List[str] = None):
        super().__init__(message)
        self.errors = errors or []


def sanitize(data: Dict[str, Any]) -> Dict[str, List[Dict[str, Any]]]:
    """
    Keep only known item keys, renaming legacy spellings.

    Locations whose value is not a list are dropped.
    """
    if not isinstance(data, dict):
        raise SnapshotValidationError("Snapshot root must be an object of location -> items")

    cleaned = {}
    for location, items in data.items():
        if not isinstance(items, list):
            continue
        cleaned_items = []
        for item in items:
            item = item if isinstance(item, dict) else {}
            out = {}
            for key, value in item.items():
                key = KEY_ALIASES.get(key, key)
                if key in ALLOWED_KEYS and key not in out:
                    out[key] = value
            cleaned_items.append(out)
        cleaned[location] = cleaned_items
    return cleaned


def validate(data: Dict[str, Any]) -> LagerSnapshot:
    """Validate sanitized data, raising SnapshotValidationError with the first errors"""
    try:
        return LagerSnapshot.model_validate(data)
    except ValidationError as e:
        errors = [
            f"{' -> '.join(str(x) for x in err['loc'])}: {err['msg']}"
            for err in e.errors()[:MAX_REPORTED_ERRORS]
        ]
        raise SnapshotValidationError("lager.json does not match the snapshot schema", errors) from e


def read_snapshot(path: Union[str, Path]) -> LagerSnapshot:
    """Read, sanitize and validate a snapshot file"""
    file_path = Path(path)
    with file_path.open("r", encoding="utf-8") as fh:
        raw = json.load(fh)
    return validate(sanitize(raw))


def row_id(mk: str, artikelnr: str, location: str) -> str:
    return f"{mk}::{artikelnr}::{location}"


# Per-location fields; everything else describes the article
LOCATION_KEYS = ("Status", "Lagerplats")


def article_data(item: LagerItem) -> Dict[str, Any]:
    """Raw item fields (original key names) that belong to the article"""
    raw = item.model_dump(mode="json", by_alias=True)
    return {k: v for k, v in raw.items() if k not in LOCATION_KEYS}


def to_rows(snapshot: LagerSnapshot) -> List[Dict[str, Any]]:
    """
    Flatten a snapshot into canonical inventory rows.

    Items without maker code or article number are skipped.
    """
    rows = []
    for location, items in snapshot.root.items():
        for item in items:
            if not item.mk or not item.artikelnr:
                logger.warning("Skipping item missing MK/Artikelnr at location %s", location)
                continue
            rows.append({
                "id": row_id(item.mk, item.artikelnr, location),
                "mk": item.mk,
                "artikelnr": item.artikelnr,
                "location": location,
                "status": item.status,
                "lagerplats": item.lagerplats,
                "benamning": item.benamning,
                "benamning2": item.benamning2,
                "extrainfo": item.extrainfo,
                "bild": item.bild,
                "paket": list(item.paket or []),
                "fordon": list(item.fordon or []),
                "alternativart": [
                    alt.model_dump(by_alias=True) for alt in (item.alternativart or [])
                ],
                "article_data": article_data(item),
            })
    return rows


def export_json_schema() -> Dict[str, Any]:
    """JSON Schema of the snapshot format"""
    return LagerSnapshot.model_json_schema(by_alias=True)
