"""Weapon catalog (static reference data).

The catalog is an immutable table. Shop and combat services receive it as a
constructor argument instead of reading a module global.
"""

from typing import Dict, Iterator, Optional, Tuple

from pydantic import BaseModel, ConfigDict


class Weapon(BaseModel):
    weapon_id: str
    name: str
    cost: int
    power: int
    upgrade_cost: int
    max_level: int

    model_config = ConfigDict(frozen=True)


class WeaponCatalog:
    """Read-only lookup over a fixed set of weapons."""

    def __init__(self, weapons: Tuple[Weapon, ...]):
        self._weapons: Tuple[Weapon, ...] = tuple(weapons)
        self._by_key: Dict[str, Weapon] = {}
        for weapon in self._weapons:
            self._by_key[weapon.weapon_id.lower()] = weapon
            self._by_key.setdefault(weapon.name.lower(), weapon)

    def __iter__(self) -> Iterator[Weapon]:
        return iter(self._weapons)

    def __len__(self) -> int:
        return len(self._weapons)

    def __contains__(self, weapon_id: str) -> bool:
        return self.get(weapon_id) is not None

    def get(self, weapon_id: str) -> Optional[Weapon]:
        """Find a weapon by id or display name, case-insensitively."""
        if not weapon_id:
            return None
        return self._by_key.get(weapon_id.strip().lower())

    def all(self) -> Tuple[Weapon, ...]:
        return self._weapons


WEAPON_CATALOG = WeaponCatalog(
    (
        Weapon(weapon_id="knife", name="Switchblade", cost=50, power=5, upgrade_cost=25, max_level=5),
        Weapon(weapon_id="pistol", name="Pistol", cost=100, power=10, upgrade_cost=50, max_level=5),
        Weapon(weapon_id="shotgun", name="Sawed-Off Shotgun", cost=250, power=25, upgrade_cost=120, max_level=5),
        Weapon(weapon_id="uzi", name="Uzi", cost=400, power=40, upgrade_cost=200, max_level=5),
        Weapon(weapon_id="tommy", name="Tommy Gun", cost=750, power=70, upgrade_cost=350, max_level=4),
        Weapon(weapon_id="rpg", name="RPG", cost=1500, power=150, upgrade_cost=700, max_level=3),
    )
)
