import os
from dotenv import load_dotenv

load_dotenv()


def _bool_env(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


user = os.getenv("DB_USER")
password = os.getenv("DB_PASSWORD")
host = os.getenv("DB_HOST")
port = os.getenv("DB_PORT", "5432")
db_name = os.getenv("DB_NAME")
sqlite_path = os.getenv("GANGWARS_SQLITE_PATH")

redis_host = os.getenv("REDIS_HOST", "redis")
redis_port = int(os.getenv("REDIS_PORT", "6379"))
announce_channel = os.getenv("GANGWARS_ANNOUNCE_CHANNEL", "gangwars:announcements")

# Read by the dispatcher side (HTTP surface), never by the services.
currency_name = os.getenv("GANGWARS_CURRENCY_NAME", "Coins")
game_enabled = _bool_env("GANGWARS_GAME_ENABLED", True)
passive_income_amount = int(os.getenv("GANGWARS_PASSIVE_INCOME", "25"))

starting_currency = int(os.getenv("GANGWARS_STARTING_CURRENCY", "100"))
max_gang_members = int(os.getenv("GANGWARS_MAX_GANG_MEMBERS", "5"))

if __name__ == "__main__":
    print(user, host, port, db_name, sqlite_path, redis_host, redis_port)
