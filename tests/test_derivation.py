"""Tests for the RFC 8291 key derivation chain."""

import pytest

from webpush_ece.derivation import compute_ikm, derive_cek_and_nonce
from webpush_ece.keys import b64url_decode
from webpush_ece.types import CEK_INFO, NONCE_INFO, InvalidInputError
from .test_vectors import (
    AS_PUBLIC_B64,
    UA_PUBLIC_B64,
    AUTH_SECRET_B64,
    SALT_B64,
    SHARED_SECRET_B64,
    IKM_B64,
    CEK_INFO_B64,
    NONCE_INFO_B64,
    CEK_B64,
    NONCE_B64,
)


@pytest.fixture
def ikm() -> bytes:
    return b64url_decode(IKM_B64)


class TestComputeIkm:
    """Test the first HKDF stage."""

    def test_ikm_matches_vector(self) -> None:
        result = compute_ikm(
            b64url_decode(AUTH_SECRET_B64),
            b64url_decode(SHARED_SECRET_B64),
            b64url_decode(UA_PUBLIC_B64),
            b64url_decode(AS_PUBLIC_B64),
        )

        assert len(result) == 32
        assert result == b64url_decode(IKM_B64)

    def test_public_key_order_matters(self) -> None:
        """Receiver key comes first in the info string."""
        swapped = compute_ikm(
            b64url_decode(AUTH_SECRET_B64),
            b64url_decode(SHARED_SECRET_B64),
            b64url_decode(AS_PUBLIC_B64),
            b64url_decode(UA_PUBLIC_B64),
        )

        assert swapped != b64url_decode(IKM_B64)

    def test_wrong_auth_secret_length(self) -> None:
        with pytest.raises(InvalidInputError, match="Auth secret"):
            compute_ikm(
                bytes(15),
                b64url_decode(SHARED_SECRET_B64),
                b64url_decode(UA_PUBLIC_B64),
                b64url_decode(AS_PUBLIC_B64),
            )

    def test_wrong_public_key_length(self) -> None:
        with pytest.raises(InvalidInputError, match="Sender public key"):
            compute_ikm(
                b64url_decode(AUTH_SECRET_B64),
                b64url_decode(SHARED_SECRET_B64),
                b64url_decode(UA_PUBLIC_B64),
                bytes(33),
            )


class TestDeriveCekAndNonce:
    """Test the second HKDF stage."""

    def test_info_strings_match_vector(self) -> None:
        assert CEK_INFO == b64url_decode(CEK_INFO_B64)
        assert NONCE_INFO == b64url_decode(NONCE_INFO_B64)

    def test_cek_and_nonce_match_vector(self, ikm: bytes) -> None:
        cek, nonce = derive_cek_and_nonce(ikm, b64url_decode(SALT_B64))

        assert cek == b64url_decode(CEK_B64)
        assert nonce == b64url_decode(NONCE_B64)

    def test_deterministic(self, ikm: bytes) -> None:
        salt = b64url_decode(SALT_B64)

        assert derive_cek_and_nonce(ikm, salt) == derive_cek_and_nonce(ikm, salt)

    def test_salt_changes_output(self, ikm: bytes) -> None:
        cek1, nonce1 = derive_cek_and_nonce(ikm, bytes(16))
        cek2, nonce2 = derive_cek_and_nonce(ikm, bytes([1]) * 16)

        assert cek1 != cek2
        assert nonce1 != nonce2

    def test_wrong_salt_length(self, ikm: bytes) -> None:
        with pytest.raises(InvalidInputError, match="Salt"):
            derive_cek_and_nonce(ikm, bytes(12))
