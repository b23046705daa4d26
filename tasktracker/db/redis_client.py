from typing import Optional

import redis

_clients = {}


def get_redis(url: Optional[str]) -> Optional[redis.Redis]:
    """Return a shared client for ``url``, or None when Redis is not configured."""
    if not url:
        return None
    client = _clients.get(url)
    if client is None:
        client = redis.Redis.from_url(url, decode_responses=True)
        _clients[url] = client
    return client


def close_redis() -> None:
    for client in _clients.values():
        client.close()
    _clients.clear()
