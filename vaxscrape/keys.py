# keys.py
from typing import Any, Dict, Iterable, List, Mapping, Optional

KEY_FIELDS = ("name", "street", "city", "zip")


def generate_key(
    name: Optional[str] = None,
    street: Optional[str] = None,
    city: Optional[str] = None,
    zip: Optional[str] = None,
) -> str:
    """
    Canonical string for a location: each present field, in KEY_FIELDS order,
    prefixed with "|". Empty or missing parts are skipped; nothing is trimmed
    or case-folded.
    """
    parts = (name, street, city, zip)
    return "".join(f"|{part}" for part in parts if part)


def hash_code(s: str) -> int:
    """
    32-bit signed rolling hash (h = h*31 + code unit), wrapping like JS `| 0`.

    Iterates UTF-16 code units so astral characters hash as surrogate pairs.
    """
    data = s.encode("utf-16-le")
    h = 0
    for i in range(0, len(data), 2):
        unit = data[i] | (data[i + 1] << 8)
        h = (h * 31 + unit) & 0xFFFFFFFF
    return h - 0x100000000 if h & 0x80000000 else h


def generate_location_id(
    name: Optional[str] = None,
    street: Optional[str] = None,
    city: Optional[str] = None,
    zip: Optional[str] = None,
) -> int:
    # Ref ids must be positive.
    return abs(hash_code(generate_key(name, street, city, zip)))


def _key_fields(location: Mapping[str, Any]) -> Dict[str, Any]:
    return {f: location.get(f) for f in KEY_FIELDS}


def generate_location_ids(locations: Iterable[Mapping[str, Any]]) -> List[int]:
    return [generate_location_id(**_key_fields(loc)) for loc in locations]


def add_generated_ids_to_locations(locations: Iterable[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    """Copies of `locations` with `refId` set, in input order."""
    return [{**loc, "refId": generate_location_id(**_key_fields(loc))} for loc in locations]
