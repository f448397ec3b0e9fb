import re
from typing import Any, Dict, Optional, Tuple

# O*NET-SOC: two-digit major group, four-digit detail, optional .NN variant
OCCUPATION_CODE_RE = re.compile(r"^\d{2}-\d{4}(\.\d{2})?$")


def is_valid_code(code: Any) -> bool:
    return isinstance(code, str) and bool(OCCUPATION_CODE_RE.match(code))


def onet_to_soc(onet_code: str) -> str:
    """Drop the O*NET variant suffix: "15-1252.00" -> "15-1252"."""
    return onet_code.strip().split(".", 1)[0]


def slugify(title: str) -> str:
    s = title.lower()
    s = re.sub(r"[^a-z0-9\s-]", "", s)
    s = re.sub(r"\s+", "-", s.strip())
    return re.sub(r"-+", "-", s)


def display_title(record: Dict[str, Any]) -> str:
    # manual careers may carry "name" instead of "title"
    return str(record.get("title") or record.get("name") or "")


def title_sort_key(record: Dict[str, Any]) -> Tuple[str, str, str]:
    """Case-normalized title, with slug and code as tie-breakers."""
    return (
        display_title(record).casefold(),
        str(record.get("slug") or ""),
        str(record.get("onet_code") or ""),
    )


def secondary_key(record: Dict[str, Any]) -> Optional[str]:
    """SOC code used by the media and narrative overlays."""
    soc = record.get("soc_code")
    if isinstance(soc, str) and soc:
        return soc
    code = record.get("onet_code")
    if is_valid_code(code):
        return onet_to_soc(code)
    return None
