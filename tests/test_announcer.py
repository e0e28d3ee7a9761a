import json
import unittest

from redis.exceptions import ConnectionError

from gangwars.announcer import RedisAnnouncer


class FakePubSub:
    def __init__(self, messages):
        self.messages = list(messages)
        self.subscribed = []
        self.closed = False

    async def subscribe(self, channel):
        self.subscribed.append(channel)

    async def unsubscribe(self, channel):
        self.subscribed.remove(channel)

    async def get_message(self, ignore_subscribe_messages=True, timeout=None):
        return self.messages.pop(0)

    async def close(self):
        self.closed = True


class FakeRedis:
    def __init__(self, messages=(), fail=False):
        self.published = []
        self.fail = fail
        self.pubsub_instance = FakePubSub(messages)

    async def publish(self, channel, payload):
        if self.fail:
            raise ConnectionError("redis is down")
        self.published.append((channel, json.loads(payload)))

    def pubsub(self):
        return self.pubsub_instance


class RedisAnnouncerTests(unittest.IsolatedAsyncioTestCase):
    async def test_announce_publishes_json(self) -> None:
        redis = FakeRedis()
        await RedisAnnouncer(redis, channel="test").announce("A beat B")
        channel, payload = redis.published[0]
        self.assertEqual((channel, payload["text"]), ("test", "A beat B"))
        self.assertIn("sent_at", payload)

    async def test_announce_failure_is_not_raised(self) -> None:
        await RedisAnnouncer(FakeRedis(fail=True), channel="test").announce("lost")

    async def test_listen_yields_texts_and_skips_garbage(self) -> None:
        redis = FakeRedis(
            messages=[
                None,
                {"type": "message", "data": "not json"},
                {"type": "message", "data": json.dumps({"text": "first"})},
                {"type": "message", "data": json.dumps({"text": "second"})},
            ]
        )
        listener = RedisAnnouncer(redis, channel="test").listen()
        self.assertEqual(await listener.__anext__(), "first")
        self.assertEqual(await listener.__anext__(), "second")
        await listener.aclose()
        self.assertTrue(redis.pubsub_instance.closed)
        self.assertEqual(redis.pubsub_instance.subscribed, [])


if __name__ == "__main__":
    unittest.main()
