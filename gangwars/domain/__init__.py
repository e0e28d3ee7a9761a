"""Domain layer (pure game rules).

- Weapon catalog, inventory decoding, roles and withdraw caps, combat math.
- No I/O here: no DB sessions, no FastAPI, no Redis.
- The current time and the jitter draws are passed in by the services.
"""
