"""
Decoding of raw model output into a workout document.

Only two things are tolerated: surrounding whitespace and a single markdown
code fence around the JSON. Everything else that is not a JSON object is
UnknownGenerationError; the document is never repaired.
"""
import copy
import json
import re
from typing import Any, Dict, List

from services.workout_errors import UnknownGenerationError

_FENCE = re.compile(r"^```(?:json)?\s*\n?(.*?)\n?```$", re.DOTALL | re.IGNORECASE)


def decode_workout_text(text: str) -> Dict[str, Any]:
    if text is None or not text.strip():
        raise UnknownGenerationError("Empty response from generation service")

    body = text.strip()
    fenced = _FENCE.match(body)
    if fenced:
        body = fenced.group(1).strip()

    try:
        doc = json.loads(body)
    except json.JSONDecodeError as e:
        raise UnknownGenerationError(f"Unparsable generation output: {e.msg} at position {e.pos}")

    if not isinstance(doc, dict):
        raise UnknownGenerationError(f"Generation output is {type(doc).__name__}, expected object")
    return doc


def _items(doc: Dict[str, Any]):
    blocks = doc.get("blocks")
    if not isinstance(blocks, list):
        return
    for block in blocks:
        if not isinstance(block, dict) or not isinstance(block.get("items"), list):
            continue
        for item in block["items"]:
            if isinstance(item, dict):
                yield item


def item_names(doc: Dict[str, Any]) -> List[str]:
    """Every item name in document order (string names only, duplicates kept)."""
    return [item["name"] for item in _items(doc) if isinstance(item.get("name"), str)]


def with_exercise_ids(doc: Dict[str, Any], ids_by_name: Dict[str, int]) -> Dict[str, Any]:
    """Copy of doc with each item's exercise_id replaced by the catalog id for its name."""
    result = copy.deepcopy(doc)
    for item in _items(result):
        name = item.get("name")
        if isinstance(name, str) and name in ids_by_name:
            item["exercise_id"] = ids_by_name[name]
    return result
