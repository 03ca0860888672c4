"""Random credentials for imported users."""

from __future__ import annotations

import secrets
import string

import bcrypt

PASSWORD_ALPHABET = string.ascii_letters + string.digits + "!@#$%^&*()-_[]{}<>~+=,.;:?|"


def generate_password(length: int = 12) -> str:
    return "".join(secrets.choice(PASSWORD_ALPHABET) for _ in range(length))


def hash_password(password: str, rounds: int = 12) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
