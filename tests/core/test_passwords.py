"""Tests for password hashing."""

import asyncio
from unittest.mock import patch

import pytest

from schoolhub.core.passwords import hash_password, hash_password_async, verify_password


def test_hash_roundtrip():
    encoded = hash_password("Secret123")

    assert encoded.startswith("scrypt$")
    assert verify_password("Secret123", encoded)
    assert not verify_password("Secret124", encoded)


def test_hashes_are_salted():
    assert hash_password("Secret123") != hash_password("Secret123")


def test_malformed_hash_never_verifies():
    assert not verify_password("Secret123", "plain-text")
    assert not verify_password("Secret123", "bcrypt$a$b")


@pytest.mark.asyncio
async def test_async_hash_runs_in_worker_thread():
    with patch.object(asyncio, "to_thread", wraps=asyncio.to_thread) as to_thread:
        encoded = await hash_password_async("Secret123")

    to_thread.assert_called_once_with(hash_password, "Secret123")
    assert verify_password("Secret123", encoded)
