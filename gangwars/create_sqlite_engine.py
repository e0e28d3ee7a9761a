import pathlib

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from gangwars.load_secrets import sqlite_path

file_path = pathlib.Path(__file__).parents[1]
file_path /= "./gangwars.sqlite3"
if sqlite_path:
    file_path = pathlib.Path(sqlite_path)


def sqlite_url(path: pathlib.Path = file_path) -> str:
    return f"sqlite+aiosqlite:///{path}"


def create_sqlite_engine(path: pathlib.Path = file_path) -> AsyncEngine:
    return create_async_engine(url=sqlite_url(path), echo=False)
