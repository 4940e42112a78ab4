# src/services/auth_service/utils.py
"""
Хэширование паролей (werkzeug.security).
"""

from __future__ import annotations

import asyncio

from werkzeug.security import check_password_hash, generate_password_hash


def hash_password(password: str, method: str = "scrypt") -> str:
    return generate_password_hash(password, method=method)


def verify_password(password_hash: str, password: str) -> bool:
    return check_password_hash(password_hash, password)


async def hash_password_async(password: str, method: str = "scrypt") -> str:
    """Хэширование в рабочем потоке, чтобы не блокировать event loop."""
    return await asyncio.to_thread(hash_password, password, method)


async def verify_password_async(password_hash: str, password: str) -> bool:
    return await asyncio.to_thread(verify_password, password_hash, password)
