import unittest

from gangwars.domain.gang_rules import Role
from gangwars.errors import NotFoundError, PermissionDeniedError, ValidationError
from tests.support import EngineTestCase


class MembershipTests(EngineTestCase):
    async def asyncSetUp(self) -> None:
        await super().asyncSetUp()
        for player_id, name in (("boss", "Boss"), ("lt", "Lieutenant"), ("g1", "Grunt1"), ("g2", "Grunt2")):
            await self.engine.register(player_id, name)
        self.gang = await self.engine.create_gang("boss", "Crew")

    async def test_join_request_and_approval(self) -> None:
        join_request = await self.engine.request_join("g1", self.gang.gang_id)
        pending = await self.engine.list_join_requests(self.gang.gang_id)
        self.assertEqual([r.request_id for r in pending], [join_request.request_id])

        with self.assertRaises(ValidationError) as ctx:
            await self.engine.request_join("g1", self.gang.gang_id)
        self.assertEqual(ctx.exception.reason, "Join request already pending")

        player = await self.engine.approve_join(join_request.request_id, "boss")
        self.assertEqual(player.gang_id, self.gang.gang_id)
        self.assertEqual(player.role, Role.grunt)
        self.assertEqual(await self.engine.list_join_requests(self.gang.gang_id), [])
        self.assertEqual((await self.engine.get_gang(self.gang.gang_id)).members, ["boss", "g1"])

    async def test_approval_clears_other_pending_requests(self) -> None:
        await self.engine.register("boss2", "Boss2")
        other = await self.engine.create_gang("boss2", "Others")
        first = await self.engine.request_join("g1", self.gang.gang_id)
        await self.engine.request_join("g1", other.gang_id)

        await self.engine.approve_join(first.request_id, "boss")
        self.assertEqual(await self.engine.list_join_requests(other.gang_id), [])

    async def test_grunt_cannot_approve(self) -> None:
        join_request = await self.engine.request_join("g1", self.gang.gang_id)
        await self.engine.approve_join(join_request.request_id, "boss")
        pending = await self.engine.request_join("g2", self.gang.gang_id)

        with self.assertRaises(PermissionDeniedError) as ctx:
            await self.engine.approve_join(pending.request_id, "g1")
        self.assertEqual(ctx.exception.reason, "Not authorized to approve")
        self.assertIsNone((await self.engine.get_player("g2")).gang_id)

    async def test_lieutenant_can_approve_and_reject(self) -> None:
        join_request = await self.engine.request_join("lt", self.gang.gang_id)
        await self.engine.approve_join(join_request.request_id, "boss")
        await self.engine.set_role("boss", "lt", Role.lieutenant)

        pending = await self.engine.request_join("g1", self.gang.gang_id)
        await self.engine.approve_join(pending.request_id, "lt")

        pending = await self.engine.request_join("g2", self.gang.gang_id)
        rejected = await self.engine.reject_join(pending.request_id, "lt")
        self.assertEqual(rejected.player_id, "g2")
        self.assertIsNone((await self.engine.get_player("g2")).gang_id)
        with self.assertRaises(NotFoundError) as ctx:
            await self.engine.approve_join(pending.request_id, "lt")
        self.assertEqual(ctx.exception.reason, "Join request not found")

        # Rejected players may ask again.
        await self.engine.request_join("g2", self.gang.gang_id)

    async def test_gang_is_full(self) -> None:
        for index in range(4):
            player_id = f"extra{index}"
            await self.engine.register(player_id, f"Extra{index}")
            join_request = await self.engine.request_join(player_id, self.gang.gang_id)
            await self.engine.approve_join(join_request.request_id, "boss")

        with self.assertRaises(ValidationError) as ctx:
            await self.engine.request_join("g1", self.gang.gang_id)
        self.assertEqual(ctx.exception.reason, "Gang is full")

    async def test_member_cannot_request_another_gang(self) -> None:
        await self.engine.register("boss2", "Boss2")
        other = await self.engine.create_gang("boss2", "Others")
        with self.assertRaises(ValidationError) as ctx:
            await self.engine.request_join("boss", other.gang_id)
        self.assertEqual(ctx.exception.reason, "Already in a gang")

    async def test_leave_keeps_gang_with_remaining_members(self) -> None:
        await self.make_gang_members("g1")
        result = await self.engine.leave("g1")
        self.assertFalse(result.gang_deleted)
        self.assertEqual((await self.engine.get_gang(self.gang.gang_id)).members, ["boss"])
        self.assertIsNone((await self.engine.get_player("g1")).gang_id)

    async def test_last_member_leaving_deletes_gang(self) -> None:
        await self.engine.request_join("g1", self.gang.gang_id)
        result = await self.engine.leave("boss")
        self.assertTrue(result.gang_deleted)
        with self.assertRaises(NotFoundError):
            await self.engine.get_gang(self.gang.gang_id)
        player = await self.engine.get_player("boss")
        self.assertIsNone(player.gang_id)
        self.assertEqual(player.role, Role.grunt)

    async def test_leave_without_gang(self) -> None:
        with self.assertRaises(ValidationError) as ctx:
            await self.engine.leave("g1")
        self.assertEqual(ctx.exception.reason, "Not in a gang")

    async def test_disband_releases_everyone(self) -> None:
        await self.make_gang_members("g1", "g2")
        released = await self.engine.disband(self.gang.gang_id)
        self.assertEqual(sorted(released), ["boss", "g1", "g2"])
        for player_id in released:
            self.assertIsNone((await self.engine.get_player(player_id)).gang_id)
        with self.assertRaises(NotFoundError):
            await self.engine.get_gang(self.gang.gang_id)

    async def test_vote_disband_once_per_member(self) -> None:
        await self.make_gang_members("g1")
        result = await self.engine.vote_disband("g1")
        self.assertEqual((result.votes, result.members), (1, 2))
        with self.assertRaises(ValidationError) as ctx:
            await self.engine.vote_disband("g1")
        self.assertEqual(ctx.exception.reason, "Already voted")

        await self.engine.leave("g1")
        self.assertEqual((await self.engine.get_gang(self.gang.gang_id)).disband_votes, [])

    async def test_set_role_rules(self) -> None:
        await self.make_gang_members("g1", "g2")
        with self.assertRaises(PermissionDeniedError) as ctx:
            await self.engine.set_role("g1", "g2", Role.lieutenant)
        self.assertEqual(ctx.exception.reason, "Only the God Father can assign roles")
        with self.assertRaises(ValidationError) as ctx:
            await self.engine.set_role("boss", "g1", Role.god_father)
        self.assertEqual(ctx.exception.reason, "Invalid role")
        with self.assertRaises(ValidationError) as ctx:
            await self.engine.set_role("boss", "boss", Role.grunt)
        self.assertEqual(ctx.exception.reason, "Cannot change your own role")

        promoted = await self.engine.set_role("boss", "g1", Role.lieutenant)
        self.assertEqual(promoted.role, Role.lieutenant)
        demoted = await self.engine.set_role("boss", "g1", "Grunt")
        self.assertEqual(demoted.role, Role.grunt)

    async def make_gang_members(self, *member_ids: str) -> None:
        for member_id in member_ids:
            join_request = await self.engine.request_join(member_id, self.gang.gang_id)
            await self.engine.approve_join(join_request.request_id, "boss")


if __name__ == "__main__":
    unittest.main()
