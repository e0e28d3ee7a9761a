"""Combat rules that are independent from HTTP and DB.

Rule of thumb:
- OK: power arithmetic, cooldown windows, spoils.
- Not OK: touching DB sessions, datetime.now(), or an RNG.
  Callers pass the current time and the already-drawn jitter in.
"""

from datetime import datetime, timedelta
from typing import Iterable, Mapping, NamedTuple, Optional

from gangwars.domain.weapons import WeaponCatalog

PLAYER_JITTER_MAX = 10.0
GANG_JITTER_MAX = 20.0
ATTACK_COOLDOWN = timedelta(minutes=30)
SPOILS_DIVISOR = 10  # loser pays floor(balance / 10)


class BattleOutcome(NamedTuple):
    attacker_power: float
    target_power: float
    attacker_won: bool
    draw: bool
    spoils: int


def base_power(levels: Mapping[str, int], catalog: WeaponCatalog) -> int:
    """Sum power * level over inventory entries that match a catalog weapon."""
    total = 0
    for weapon_id, level in levels.items():
        weapon = catalog.get(weapon_id)
        if weapon is None:
            continue
        total += weapon.power * int(level)
    return total


def gang_base_power(member_levels: Iterable[Mapping[str, int]], catalog: WeaponCatalog) -> int:
    return sum(base_power(levels, catalog) for levels in member_levels)


def is_on_cooldown(
    last_attacked_at: Optional[datetime],
    last_attack_at: Optional[datetime],
    now: datetime,
    cooldown: timedelta = ATTACK_COOLDOWN,
) -> bool:
    """Return True if the entity may not be attacked right now.

    An entity is protected when it was attacked more recently than it last
    attacked someone, and that attack happened less than `cooldown` ago.
    """
    if last_attacked_at is None:
        return False
    if last_attack_at is not None and last_attacked_at <= last_attack_at:
        return False
    return now - last_attacked_at < cooldown


def spoils_for(loser_balance: int) -> int:
    """Amount the loser hands to the winner: floor(10% of the balance)."""
    if loser_balance <= 0:
        return 0
    return loser_balance // SPOILS_DIVISOR


def resolve_battle(
    attacker_base: int,
    target_base: int,
    attacker_jitter: float,
    target_jitter: float,
    attacker_balance: int,
    target_balance: int,
) -> BattleOutcome:
    """Decide a battle from base powers and the jitter drawn for each side."""
    attacker_power = attacker_base + attacker_jitter
    target_power = target_base + target_jitter

    if attacker_power == target_power:
        return BattleOutcome(attacker_power, target_power, False, True, 0)

    attacker_won = attacker_power > target_power
    loser_balance = target_balance if attacker_won else attacker_balance
    return BattleOutcome(
        attacker_power,
        target_power,
        attacker_won,
        False,
        spoils_for(loser_balance),
    )
