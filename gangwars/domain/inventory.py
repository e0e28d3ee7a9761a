"""Inventory shape handling.

Stored inventories come in two encodings:

- legacy: a list of owned weapon ids, each implicitly level 1
- canonical: a mapping of weapon id -> level

Decoding happens once at the data-access boundary; only the canonical shape is
ever written back.
"""

from typing import Dict, List, NamedTuple, Union

RawInventory = Union[List[str], Dict[str, int], None]


class DecodedInventory(NamedTuple):
    levels: Dict[str, int]
    is_legacy: bool


def decode_inventory(raw: RawInventory) -> DecodedInventory:
    """Decode a stored inventory into the canonical mapping.

    Args:
        raw: The stored JSON value (list, dict or None).

    Returns:
        DecodedInventory: The level mapping and whether the stored value was
        in the legacy list shape (and therefore needs to be persisted again).
    """
    if raw is None:
        return DecodedInventory(levels={}, is_legacy=False)

    if isinstance(raw, list):
        levels = {str(weapon_id): 1 for weapon_id in raw if weapon_id}
        return DecodedInventory(levels=levels, is_legacy=True)

    if isinstance(raw, dict):
        levels = {}
        for weapon_id, level in raw.items():
            level = int(level)
            if level >= 1:
                levels[str(weapon_id)] = level
        return DecodedInventory(levels=levels, is_legacy=False)

    raise ValueError(f"Unsupported inventory encoding: {type(raw).__name__}")


def with_level(levels: Dict[str, int], weapon_id: str, level: int) -> Dict[str, int]:
    """Return a copy of the mapping with one weapon set to the given level."""
    if level < 1:
        raise ValueError("level must be >= 1")
    updated = dict(levels)
    updated[weapon_id] = level
    return updated
