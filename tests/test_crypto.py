"""Tests for Web Push payload encryption and decryption."""

import os

import pytest

from webpush_ece import record as record_module
from webpush_ece.crypto import decrypt, encrypt, encrypt_predictably
from webpush_ece.keys import (
    b64url_decode,
    generate_ephemeral_keypair,
    private_key_from_bytes,
    public_key_from_bytes,
)
from webpush_ece.types import (
    HEADER_SIZE,
    AuthenticationFailedError,
    CryptoError,
    InvalidInputError,
    MalformedRecordError,
    PayloadTooLargeError,
)
from .test_vectors import (
    PLAINTEXT,
    AS_PRIVATE_B64,
    UA_PRIVATE_B64,
    UA_PUBLIC_B64,
    AUTH_SECRET_B64,
    SALT_B64,
    CIPHERTEXT_B64,
)


@pytest.fixture
def ua_keys():
    """A fresh user agent key pair."""
    return generate_ephemeral_keypair()


@pytest.fixture
def auth_secret() -> bytes:
    return os.urandom(16)


class TestRfc8291Example:
    """Reproduce the RFC 8291 Appendix A example."""

    def test_encryption_matches_vector(self) -> None:
        ciphertext = encrypt_predictably(
            b64url_decode(SALT_B64),
            PLAINTEXT,
            private_key_from_bytes(b64url_decode(AS_PRIVATE_B64)),
            public_key_from_bytes(b64url_decode(UA_PUBLIC_B64)),
            b64url_decode(AUTH_SECRET_B64),
        )

        assert ciphertext == b64url_decode(CIPHERTEXT_B64)

    def test_decrypt_vector(self) -> None:
        plaintext = decrypt(
            b64url_decode(CIPHERTEXT_B64),
            private_key_from_bytes(b64url_decode(UA_PRIVATE_B64)),
            b64url_decode(AUTH_SECRET_B64),
        )

        assert plaintext == PLAINTEXT

    def test_encryption_decryption(self) -> None:
        ciphertext = encrypt_predictably(
            b64url_decode(SALT_B64),
            PLAINTEXT,
            private_key_from_bytes(b64url_decode(AS_PRIVATE_B64)),
            public_key_from_bytes(b64url_decode(UA_PUBLIC_B64)),
            b64url_decode(AUTH_SECRET_B64),
        )

        plaintext = decrypt(
            ciphertext,
            private_key_from_bytes(b64url_decode(UA_PRIVATE_B64)),
            b64url_decode(AUTH_SECRET_B64),
        )

        assert plaintext == PLAINTEXT


class TestRoundTrip:
    """Encrypt then decrypt with random keys."""

    def test_every_length_up_to_capacity(self, ua_keys, auth_secret) -> None:
        """All plaintext lengths that fit a 64-byte record survive a round trip."""
        ua_private, ua_public = ua_keys

        for length in range(0, 64 - 16 - 1 + 1):
            plaintext = os.urandom(length)
            data = encrypt(plaintext, ua_public, auth_secret, record_size=64)

            assert decrypt(data, ua_private, auth_secret) == plaintext, f"length {length}"

    def test_round_trip_with_padding(self, ua_keys, auth_secret) -> None:
        ua_private, ua_public = ua_keys

        data = encrypt(b"padded\x00", ua_public, auth_secret, padding=200)

        assert len(data) == HEADER_SIZE + 7 + 1 + 200 + 16
        assert decrypt(data, ua_private, auth_secret) == b"padded\x00"

    def test_default_record_size_limit(self, ua_keys, auth_secret) -> None:
        ua_private, ua_public = ua_keys

        data = encrypt(bytes(4079), ua_public, auth_secret)
        assert decrypt(data, ua_private, auth_secret) == bytes(4079)

        with pytest.raises(PayloadTooLargeError):
            encrypt(bytes(4080), ua_public, auth_secret)

    def test_fresh_salt_and_key_per_call(self, ua_keys, auth_secret) -> None:
        _, ua_public = ua_keys

        first = encrypt(b"same", ua_public, auth_secret)
        second = encrypt(b"same", ua_public, auth_secret)

        assert first[:16] != second[:16]
        assert first[21:HEADER_SIZE] != second[21:HEADER_SIZE]

    def test_wrong_auth_secret_length(self, ua_keys) -> None:
        _, ua_public = ua_keys

        with pytest.raises(InvalidInputError, match="Auth secret"):
            encrypt(b"x", ua_public, bytes(17))


class TestTamperDetection:
    """Modified records never decrypt to a wrong plaintext."""

    @pytest.fixture
    def encrypted(self, ua_keys, auth_secret):
        ua_private, ua_public = ua_keys
        data = encrypt(b"I am the walrus", ua_public, auth_secret)
        return data, ua_private, auth_secret

    def test_flipped_bit_in_body_fails(self, encrypted) -> None:
        data, ua_private, auth_secret = encrypted

        for index in range(HEADER_SIZE, len(data)):
            for bit in (0, 7):
                tampered = bytearray(data)
                tampered[index] ^= 1 << bit

                with pytest.raises(AuthenticationFailedError):
                    decrypt(bytes(tampered), ua_private, auth_secret)

    def test_flipped_salt_fails(self, encrypted) -> None:
        data, ua_private, auth_secret = encrypted
        tampered = bytearray(data)
        tampered[0] ^= 0x01

        with pytest.raises(AuthenticationFailedError):
            decrypt(bytes(tampered), ua_private, auth_secret)

    def test_wrong_auth_secret_fails(self, encrypted) -> None:
        data, ua_private, _ = encrypted

        with pytest.raises(AuthenticationFailedError):
            decrypt(data, ua_private, os.urandom(16))

    def test_wrong_receiver_key_fails(self, encrypted) -> None:
        data, _, auth_secret = encrypted
        other_private, _ = generate_ephemeral_keypair()

        with pytest.raises(AuthenticationFailedError):
            decrypt(data, other_private, auth_secret)

    def test_corrupt_key_id_is_crypto_error(self, encrypted) -> None:
        data, ua_private, auth_secret = encrypted
        tampered = bytearray(data)
        tampered[HEADER_SIZE - 1] ^= 0xFF

        with pytest.raises(CryptoError):
            decrypt(bytes(tampered), ua_private, auth_secret)

    def test_truncated_record_fails(self, encrypted) -> None:
        data, ua_private, auth_secret = encrypted

        with pytest.raises(CryptoError):
            decrypt(data[:-1], ua_private, auth_secret)


class TestHeaderCorruption:
    """Structural header errors are caught before any AEAD operation."""

    def test_key_id_length_checked_before_aead(self, monkeypatch, ua_keys, auth_secret) -> None:
        ua_private, ua_public = ua_keys
        data = bytearray(encrypt(b"I am the walrus", ua_public, auth_secret))
        data[20] = 32

        class ExplodingAESGCM:
            def __init__(self, key):
                raise AssertionError("AEAD must not run for a malformed header")

        monkeypatch.setattr(record_module, "AESGCM", ExplodingAESGCM)

        with pytest.raises(MalformedRecordError):
            decrypt(bytes(data), ua_private, auth_secret)

    @pytest.mark.parametrize("data", [b"", bytes(10), bytes(21), bytes(200)])
    def test_garbage_is_rejected(self, ua_keys, auth_secret, data) -> None:
        ua_private, _ = ua_keys

        with pytest.raises(CryptoError):
            decrypt(data, ua_private, auth_secret)
