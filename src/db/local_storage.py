# src/db/local_storage.py
from __future__ import annotations

import json
from typing import Any, List, Optional, Tuple

from db.database import connect
from utils.logger import get_logger

_logger = get_logger(__name__)

# well known keys, mirrored from the web client
USER_KEY = "user"
JWT_KEY = "jwt"
REFRESH_TOKEN_KEY = "jwtRefreshToken"
USER_ID_KEY = "userId"
CART_KEY = "cart"

AUTH_KEYS = (JWT_KEY, REFRESH_TOKEN_KEY, USER_ID_KEY, USER_KEY)


# ---------------------------
# Plain key-value access
# ---------------------------


async def get_item(key: str) -> Optional[str]:
    """Return the stored text for key, or None if absent."""
    entry = await get_entry(key)
    return entry[0] if entry else None


async def set_item(key: str, value: str) -> None:
    """Store text under key unconditionally, bumping its revision."""
    async with connect() as conn:
        await conn.execute(
            """
            INSERT INTO local_storage(key, value, revision)
            VALUES (?, ?, 1)
            ON CONFLICT(key) DO UPDATE SET
                value = excluded.value,
                revision = local_storage.revision + 1,
                updated_at = strftime('%Y-%m-%dT%H:%M:%fZ', 'now');
            """,
            (key, value),
        )
        await conn.commit()


async def remove_item(key: str) -> None:
    async with connect() as conn:
        await conn.execute("DELETE FROM local_storage WHERE key = ?;", (key,))
        await conn.commit()


async def remove_items(keys: List[str] | Tuple[str, ...]) -> None:
    """Remove several keys in one transaction (used on logout)."""
    async with connect() as conn:
        await conn.executemany(
            "DELETE FROM local_storage WHERE key = ?;", [(k,) for k in keys]
        )
        await conn.commit()


async def clear() -> None:
    async with connect() as conn:
        await conn.execute("DELETE FROM local_storage;")
        await conn.commit()


# ---------------------------
# Versioned access
# ---------------------------


async def get_entry(key: str) -> Optional[Tuple[str, int]]:
    """Return (value, revision) for key, or None if absent."""
    async with connect() as conn:
        cur = await conn.execute(
            "SELECT value, revision FROM local_storage WHERE key = ?;", (key,)
        )
        row = await cur.fetchone()
        await cur.close()
    if not row:
        return None
    return row[0], int(row[1])


async def compare_and_set(key: str, value: str, expected_revision: int) -> bool:
    """
    Write value only if the stored revision still equals expected_revision.
    expected_revision == 0 means "key must not exist yet".
    Return True if the write happened.
    """
    async with connect() as conn:
        if expected_revision == 0:
            cur = await conn.execute(
                "INSERT OR IGNORE INTO local_storage(key, value, revision) VALUES (?, ?, 1);",
                (key, value),
            )
        else:
            cur = await conn.execute(
                """
                UPDATE local_storage
                SET value = ?,
                    revision = revision + 1,
                    updated_at = strftime('%Y-%m-%dT%H:%M:%fZ', 'now')
                WHERE key = ? AND revision = ?;
                """,
                (value, key, expected_revision),
            )
        written = cur.rowcount > 0
        await cur.close()
        await conn.commit()
    if not written:
        _logger.debug(f"Revision conflict on '{key}' (expected {expected_revision}).")
    return written


# ---------------------------
# JSON helpers
# ---------------------------


async def get_json(key: str, default: Any = None) -> Any:
    """Decode the JSON stored under key; absent or malformed content yields default."""
    raw = await get_item(key)
    if raw is None:
        return default
    try:
        return json.loads(raw)
    except (TypeError, ValueError):
        _logger.debug(f"Ignoring malformed JSON under '{key}'.")
        return default


async def set_json(key: str, value: Any) -> None:
    await set_item(key, json.dumps(value, ensure_ascii=False))
