import json
import re
from typing import Any, Iterable, List, Mapping, Optional, Tuple


def validate_input(data: Mapping[str, Any], required_fields: Iterable[str]) -> List[str]:
    """Return the required fields that are missing or blank, in the order given."""
    errors: List[str] = []
    for field in required_fields:
        value = data.get(field)
        if not isinstance(value, str) or value.strip() == "":
            errors.append(field)
    return errors


def slugify(title: str) -> str:
    slug = title.lower().strip()
    # word characters are ASCII only; accented letters are dropped
    slug = re.sub(r"[^0-9A-Za-z_\s-]", "", slug)
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug


def clean(value: Optional[str], default: str = "") -> str:
    if value is None:
        return default
    return value.strip() or default


def parse_bool(value: Optional[str]) -> bool:
    # multipart forms send booleans as strings
    return value == "true"


def parse_tags(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [t.strip() for t in value.split(",") if t.strip()]


def parse_id_list(value: Any) -> List[Any]:
    """Collection prompt references arrive as a JSON array string."""
    if not value:
        return []
    if isinstance(value, list):
        return value
    try:
        parsed = json.loads(value)
    except (TypeError, ValueError):
        return []
    return parsed if isinstance(parsed, list) else []


def check_lengths(data: Mapping[str, Any], limits: Mapping[str, Tuple[int, int]]) -> List[str]:
    """Return fields whose trimmed length falls outside their (min, max) bounds."""
    errors: List[str] = []
    for field, (low, high) in limits.items():
        value = data.get(field)
        if isinstance(value, str) and not low <= len(value.strip()) <= high:
            errors.append(field)
    return errors
