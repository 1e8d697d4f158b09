"""Tests for rotating shared-secret authentication."""

import base64

import pytest

from frigate.auth import BUCKET_SECONDS, Authenticator, get_timestamp

NOW = 1_700_000_100.0  # inside a bucket, not on its edge


class TestGetTimestamp:
    """Tests for time bucketing."""

    def test_truncates_to_bucket_start(self):
        """Times inside one bucket map to its start, in milliseconds."""
        assert get_timestamp(0) == 0
        assert get_timestamp(BUCKET_SECONDS - 0.1) == 0
        assert get_timestamp(BUCKET_SECONDS) == BUCKET_SECONDS * 1000

    def test_defaults_to_wall_clock(self):
        """Without an argument the current time is used."""
        assert get_timestamp() % (BUCKET_SECONDS * 1000) == 0


class TestAuthenticator:
    """Tests for encoding and checking secrets."""

    def test_valid_token_accepted(self, authenticator: Authenticator):
        """A token from the current bucket with the same key is accepted."""
        token = authenticator.encode_secret(NOW)
        assert authenticator.check_secret(token, NOW) is True

    def test_valid_anywhere_in_same_bucket(self, authenticator: Authenticator):
        """Tokens stay valid until the bucket rolls over."""
        bucket_start = get_timestamp(NOW) / 1000
        token = authenticator.encode_secret(bucket_start)
        assert authenticator.check_secret(token, bucket_start + BUCKET_SECONDS - 1)

    def test_tokens_are_not_deterministic(self, authenticator: Authenticator):
        """Each token uses a fresh salt and nonce."""
        assert authenticator.encode_secret(NOW) != authenticator.encode_secret(NOW)

    def test_wrong_key_rejected(self, authenticator: Authenticator):
        """A token encrypted with another key fails closed."""
        token = Authenticator("some-other-key").encode_secret(NOW)
        assert authenticator.check_secret(token, NOW) is False

    def test_expired_bucket_rejected(self, authenticator: Authenticator):
        """A token from the previous bucket is rejected."""
        token = authenticator.encode_secret(NOW)
        assert authenticator.check_secret(token, NOW + BUCKET_SECONDS) is False

    @pytest.mark.parametrize("token", ["", "not base64 at all!!", "c2hvcnQ="])
    def test_garbage_rejected(self, authenticator: Authenticator, token: str):
        """Malformed tokens return False instead of raising."""
        assert authenticator.check_secret(token, NOW) is False

    def test_tampered_token_rejected(self, authenticator: Authenticator):
        """Flipping a ciphertext byte breaks the authentication tag."""
        raw = bytearray(base64.urlsafe_b64decode(authenticator.encode_secret(NOW)))
        raw[-1] ^= 0xFF
        token = base64.urlsafe_b64encode(bytes(raw)).decode("ascii")
        assert authenticator.check_secret(token, NOW) is False
