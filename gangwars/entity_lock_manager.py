import logging
from asyncio import Lock
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Optional


def player_key(player_id: Optional[str]) -> Optional[str]:
    return f"player:{player_id}" if player_id else None


def gang_key(gang_id: Optional[str]) -> Optional[str]:
    return f"gang:{gang_id}" if gang_id else None


def player_name_key(name: Optional[str]) -> Optional[str]:
    return f"name:player:{name.lower()}" if name else None


def gang_name_key(name: Optional[str]) -> Optional[str]:
    return f"name:gang:{name.lower()}" if name else None


class EntityLockManager:
    def __init__(self):
        self.locks: Dict[str, Lock] = {}  # entity keyごとにLockを管理
        self.users: Dict[str, int] = {}  # Lockを保持・待機しているタスク数
        self.lock = Lock()  # locksへのアクセスを保護

    async def get_lock(self, key: str) -> Lock:
        """Get the Lock of the specified entity key and register the caller as a user

        Every call must be paired with `release_user`.

        Args:
            key (str): "player:<id>", "gang:<id>" or a "name:" key

        Returns:
            Lock: Lock of the specified entity
        """
        async with self.lock:
            if key not in self.locks:
                self.locks[key] = Lock()
            self.users[key] = self.users.get(key, 0) + 1
            return self.locks[key]

    def release_user(self, key: str) -> None:
        self.users[key] -= 1
        if self.users[key] == 0:
            del self.users[key]

    @asynccontextmanager
    async def hold(self, *keys: Optional[str]) -> AsyncIterator[None]:
        """Hold the locks of every given entity for the duration of the block

        Keys are deduplicated and acquired in sorted order, so two operations on
        the same pair of entities can never wait on each other.

        Args:
            keys (str): Entity keys built with player_key / gang_key
        """
        ordered = sorted({key for key in keys if key})
        registered = []
        acquired = []
        try:
            for key in ordered:
                entity_lock = await self.get_lock(key)
                registered.append(key)
                await entity_lock.acquire()
                acquired.append(entity_lock)
            yield
        finally:
            for entity_lock in reversed(acquired):
                entity_lock.release()
            for key in registered:
                self.release_user(key)

    async def cleanup(self, key: str):
        """Delete the Lock of a key nobody holds or waits for

        Args:
            key (str): Entity key
        """
        async with self.lock:
            if key in self.locks and key not in self.users:
                del self.locks[key]
                logging.debug(f"Released lock entry for {key}")

    async def clear(self):
        """Drop every idle lock entry (used after a full reset)"""
        async with self.lock:
            for key in [key for key in self.locks if key not in self.users]:
                del self.locks[key]
