import unittest

from gangwars.errors import NotFoundError, ValidationError
from tests.support import EngineTestCase


class AdminTests(EngineTestCase):
    async def asyncSetUp(self) -> None:
        await super().asyncSetUp()
        await self.engine.register("boss", "Boss")
        await self.engine.register("g1", "Grunt1")
        self.gang = await self.make_gang("boss", "Crew", "g1")

    async def test_reset_removes_everything(self) -> None:
        await self.engine.reset()
        with self.assertRaises(NotFoundError):
            await self.engine.get_player("boss")
        with self.assertRaises(NotFoundError):
            await self.engine.get_gang(self.gang.gang_id)
        # Names are free again.
        await self.engine.register("other", "Boss")

    async def test_grant_currency(self) -> None:
        player = await self.engine.grant_currency("g1", 250)
        self.assertEqual(player.currency, 350)
        transactions = await self.engine.list_transactions("g1")
        self.assertEqual([(t.kind, t.amount) for t in transactions], [("admin", 250)])
        with self.assertRaises(ValidationError):
            await self.engine.grant_currency("g1", 0)

    async def test_passive_income_reaches_every_player(self) -> None:
        result = await self.engine.distribute_passive_income(25)
        self.assertEqual((result.players, result.amount), (2, 25))
        self.assertEqual((await self.engine.get_player("boss")).currency, 125)
        self.assertEqual((await self.engine.get_player("g1")).currency, 125)

    async def test_remove_member_keeps_gang(self) -> None:
        await self.engine.vote_disband("g1")
        removed = await self.engine.remove_player("g1")
        self.assertEqual(removed.player_id, "g1")
        gang = await self.engine.get_gang(self.gang.gang_id)
        self.assertEqual((gang.members, gang.disband_votes), (["boss"], []))

    async def test_remove_last_member_deletes_gang(self) -> None:
        await self.engine.remove_player("g1")
        await self.engine.remove_player("boss")
        with self.assertRaises(NotFoundError):
            await self.engine.get_gang(self.gang.gang_id)
        with self.assertRaises(NotFoundError) as ctx:
            await self.engine.remove_player("boss")
        self.assertEqual(ctx.exception.reason, "Player not found")


if __name__ == "__main__":
    unittest.main()
