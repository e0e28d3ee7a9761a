import json
import logging
from datetime import datetime
from typing import AsyncGenerator

from redis.asyncio import Redis
from redis.exceptions import RedisError

from gangwars.load_secrets import announce_channel


class RedisAnnouncer:
    """Publishes result announcements for the chat relay to read out."""

    def __init__(self, redis: Redis, channel: str = announce_channel):
        """Initialize RedisAnnouncer with a Redis connection and the channel name."""
        self.redis: Redis = redis
        self.channel: str = channel

    async def announce(self, text: str) -> None:
        """Publish one announcement. Fire-and-forget: failures are only logged.

        Args:
            text (str): The message to post to chat
        """
        payload = json.dumps({"text": text, "sent_at": datetime.now().isoformat()})
        try:
            await self.redis.publish(self.channel, payload)
            logging.debug(f"Announced on {self.channel}: {text}")
        except RedisError as e:
            logging.warning(f"Failed to announce on {self.channel}: {e}")

    async def listen(self) -> AsyncGenerator[str, None]:
        """Yield announcement texts as they are published.

        Used by the chat relay process to forward results to chat or TTS.
        """
        pubsub = self.redis.pubsub()
        await pubsub.subscribe(self.channel)
        try:
            while True:
                msg = await pubsub.get_message(ignore_subscribe_messages=True, timeout=None)
                if msg and msg["type"] == "message":
                    try:
                        yield json.loads(msg["data"])["text"]
                    except (KeyError, TypeError, ValueError) as e:
                        logging.warning(f"Skipping malformed announcement: {e}")
        finally:
            logging.info("Unsubscribing from announcement channel")
            await pubsub.unsubscribe(self.channel)
            await pubsub.close()
