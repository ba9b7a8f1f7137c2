"""Load exported record collections from JSON files."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, List, Optional, Type, TypeVar

from pydantic import BaseModel, TypeAdapter

ModelT = TypeVar("ModelT", bound=BaseModel)

logger = logging.getLogger(__name__)


def _extract_items(document: Any, wrapper_key: Optional[str]) -> List[Any]:
    """Accept either a bare JSON array or an object wrapping one."""
    if isinstance(document, list):
        return document
    if isinstance(document, dict):
        if wrapper_key:
            for key, value in document.items():
                if key.lower() == wrapper_key.lower() and isinstance(value, list):
                    return value
        for value in document.values():
            if isinstance(value, list):
                return value
    raise ValueError("Expected a JSON array or an object containing one")


def load_records(
    path: Optional[str],
    model: Type[ModelT],
    *,
    wrapper_key: Optional[str] = None,
) -> List[ModelT]:
    """
    Read ``path`` into a list of ``model`` instances.

    A missing path yields an empty list with a warning. Unreadable or invalid
    content is logged and also yields an empty list so the API still starts.
    """
    if not path:
        return []
    file_path = Path(path)
    if not file_path.exists():
        logger.warning("%s data file not found: %s", model.__name__, file_path)
        return []

    logger.info(
        "Loading %s data from %s (Size: %s bytes)",
        model.__name__,
        file_path,
        f"{file_path.stat().st_size:,}",
    )
    try:
        document = json.loads(file_path.read_text(encoding="utf-8"))
        items = _extract_items(document, wrapper_key)
        records = TypeAdapter(List[model]).validate_python(items)
    except (OSError, ValueError) as exc:  # JSONDecodeError and ValidationError included
        logger.error("Error loading %s data from %s: %s", model.__name__, file_path, exc)
        return []

    if isinstance(document, dict) and isinstance(document.get("count"), int):
        if document["count"] != len(records):
            logger.warning(
                "%s count mismatch: Expected %s, Got %s",
                model.__name__,
                document["count"],
                len(records),
            )
    logger.info("Successfully loaded %s %s records from %s", len(records), model.__name__, file_path)
    return records


__all__ = ["load_records"]
