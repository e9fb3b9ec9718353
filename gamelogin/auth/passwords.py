"""Password hashing."""

import asyncio

from passlib.context import CryptContext

# Account hashes are shared with the rest of the game server, which reads
# them with bcrypt; they are only ever checked here, never rewritten.
_pwd = CryptContext(schemes=["bcrypt"])


def hash_password(password: str) -> str:
    if not password:
        raise ValueError("password_blank")
    return _pwd.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    if not password or not password_hash:
        return False
    try:
        return _pwd.verify(password, password_hash)
    except ValueError:
        # Unrecognized or corrupt hash
        return False


async def verify_password_async(password: str, password_hash: str) -> bool:
    """Run the (deliberately slow) hash comparison off the event loop."""
    return await asyncio.to_thread(verify_password, password, password_hash)
