import unittest
from datetime import datetime, timedelta

from pydantic import ValidationError as PydanticValidationError

from gangwars.domain.combat_rules import (
    base_power,
    gang_base_power,
    is_on_cooldown,
    resolve_battle,
    spoils_for,
)
from gangwars.domain.gang_rules import (
    Role,
    can_approve_join,
    generate_gang_id,
    normalize_name,
    parse_role,
    within_withdraw_cap,
)
from gangwars.domain.inventory import decode_inventory, with_level
from gangwars.domain.weapons import WEAPON_CATALOG


class WeaponCatalogTests(unittest.TestCase):
    def test_lookup_by_id_or_name_is_case_insensitive(self) -> None:
        self.assertEqual(WEAPON_CATALOG.get("PISTOL").weapon_id, "pistol")
        self.assertEqual(WEAPON_CATALOG.get("tommy gun").weapon_id, "tommy")
        self.assertIsNone(WEAPON_CATALOG.get("banana"))
        self.assertIn("rpg", WEAPON_CATALOG)

    def test_pistol_entry(self) -> None:
        pistol = WEAPON_CATALOG.get("pistol")
        self.assertEqual((pistol.cost, pistol.power), (100, 10))

    def test_weapons_are_immutable(self) -> None:
        with self.assertRaises(PydanticValidationError):
            WEAPON_CATALOG.get("pistol").cost = 1


class InventoryTests(unittest.TestCase):
    def test_legacy_list_decodes_to_level_one(self) -> None:
        decoded = decode_inventory(["pistol", "knife"])
        self.assertTrue(decoded.is_legacy)
        self.assertEqual(decoded.levels, {"pistol": 1, "knife": 1})

    def test_mapping_is_canonical(self) -> None:
        decoded = decode_inventory({"pistol": 3, "knife": 0})
        self.assertFalse(decoded.is_legacy)
        self.assertEqual(decoded.levels, {"pistol": 3})

    def test_missing_inventory_is_empty(self) -> None:
        self.assertEqual(decode_inventory(None).levels, {})

    def test_unknown_encoding_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            decode_inventory("pistol")

    def test_with_level_copies(self) -> None:
        levels = {"pistol": 1}
        self.assertEqual(with_level(levels, "pistol", 2), {"pistol": 2})
        self.assertEqual(levels, {"pistol": 1})


class GangRuleTests(unittest.TestCase):
    def test_missing_role_defaults_to_grunt(self) -> None:
        self.assertEqual(parse_role(None), Role.grunt)
        self.assertEqual(parse_role("God Father"), Role.god_father)

    def test_only_lieutenants_and_god_father_approve(self) -> None:
        self.assertFalse(can_approve_join(Role.grunt))
        self.assertTrue(can_approve_join(Role.lieutenant))
        self.assertTrue(can_approve_join(Role.god_father))

    def test_lieutenant_cap_accepts_exactly_ten_percent(self) -> None:
        self.assertTrue(within_withdraw_cap(Role.lieutenant, 100, 1000))
        self.assertFalse(within_withdraw_cap(Role.lieutenant, 101, 1000))
        self.assertTrue(within_withdraw_cap(Role.lieutenant, 1, 10))
        self.assertFalse(within_withdraw_cap(Role.lieutenant, 1, 9))

    def test_grunt_and_god_father_caps(self) -> None:
        self.assertFalse(within_withdraw_cap(Role.grunt, 1, 1000))
        self.assertTrue(within_withdraw_cap(Role.god_father, 1000, 1000))
        self.assertFalse(within_withdraw_cap(Role.god_father, 1001, 1000))

    def test_normalize_name_strips_at_sign(self) -> None:
        self.assertEqual(normalize_name("  @Alice "), "Alice")
        self.assertEqual(normalize_name("bob"), "bob")

    def test_gang_id_is_slug_and_millis(self) -> None:
        created_at = datetime(2024, 1, 1, 12, 0, 0)
        millis = int(created_at.timestamp() * 1000)
        self.assertEqual(generate_gang_id("The  Crew", created_at), f"the_crew_{millis}")


class CombatRuleTests(unittest.TestCase):
    def setUp(self) -> None:
        self.now = datetime(2024, 1, 1, 12, 0, 0)

    def test_never_attacked_is_not_on_cooldown(self) -> None:
        self.assertFalse(is_on_cooldown(None, None, self.now))

    def test_recently_attacked_is_on_cooldown(self) -> None:
        attacked = self.now - timedelta(minutes=29)
        self.assertTrue(is_on_cooldown(attacked, None, self.now))
        self.assertFalse(is_on_cooldown(self.now - timedelta(minutes=30), None, self.now))

    def test_attacking_back_lifts_cooldown(self) -> None:
        attacked = self.now - timedelta(minutes=5)
        self.assertFalse(is_on_cooldown(attacked, self.now - timedelta(minutes=1), self.now))

    def test_power_counts_levels_and_ignores_unknown_weapons(self) -> None:
        self.assertEqual(base_power({"pistol": 2, "banana": 9}, WEAPON_CATALOG), 20)
        self.assertEqual(gang_base_power([{"pistol": 1}, {"knife": 1}], WEAPON_CATALOG), 15)

    def test_spoils_are_floor_of_ten_percent(self) -> None:
        self.assertEqual(spoils_for(59), 5)
        self.assertEqual(spoils_for(0), 0)

    def test_resolve_battle(self) -> None:
        outcome = resolve_battle(10, 0, 0.0, 0.0, 0, 50)
        self.assertTrue(outcome.attacker_won)
        self.assertEqual(outcome.spoils, 5)

        outcome = resolve_battle(0, 10, 0.0, 0.0, 80, 50)
        self.assertFalse(outcome.attacker_won)
        self.assertEqual(outcome.spoils, 8)

        draw = resolve_battle(10, 10, 0.0, 0.0, 80, 50)
        self.assertTrue(draw.draw)
        self.assertEqual(draw.spoils, 0)


if __name__ == "__main__":
    unittest.main()
