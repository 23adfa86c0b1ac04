"""Unit tests for password hashing and policy, OTP codes and JWT handling."""

import pytest

from core.errors import AuthenticationError, ValidationError
from core.security import (
    create_access_token,
    create_refresh_token,
    decode_access_token,
    decode_refresh_token,
    generate_otp_code,
    hash_password,
    otp_codes_match,
    unusable_password_hash,
    validate_password_policy,
    verify_password,
)


class TestPasswords:
    def test_hash_roundtrip(self):
        stored = hash_password("Secret1!")
        assert stored != "Secret1!"
        assert verify_password("Secret1!", stored)
        assert not verify_password("Secret2!", stored)

    def test_same_password_hashes_differently(self):
        assert hash_password("Secret1!") != hash_password("Secret1!")

    def test_garbage_hash_does_not_raise(self):
        assert verify_password("Secret1!", "not-a-hash") is False

    def test_unusable_hash_matches_nothing_obvious(self):
        stored = unusable_password_hash()
        assert not verify_password("", stored)
        assert not verify_password("Secret1!", stored)


class TestPasswordPolicy:
    def test_strong_password_passes(self):
        validate_password_policy("Secret1!")

    @pytest.mark.parametrize(
        "password,fragment",
        [
            ("SECRET1!", "lowercase"),
            ("secret1!", "uppercase"),
            ("Secrets!", "number"),
            ("Secret12", "special"),
            ("Se1!", "7 characters"),
        ],
    )
    def test_each_rule_reports_itself(self, password, fragment):
        with pytest.raises(ValidationError) as exc:
            validate_password_policy(password)
        assert fragment in exc.value.message


class TestOtpCodes:
    def test_codes_are_six_digits(self):
        for _ in range(50):
            code = generate_otp_code()
            assert len(code) == 6
            assert code.isdigit()
            assert code[0] != "0"

    def test_match_is_exact(self):
        assert otp_codes_match("123456", "123456")
        assert not otp_codes_match("123456", "123457")
        assert not otp_codes_match("123456", "12345")


class TestJwt:
    def test_access_token_carries_user_and_role(self):
        payload = decode_access_token(create_access_token(7, 3))
        assert payload["user_id"] == 7
        assert payload["role"] == 3
        assert payload["typ"] == "access"

    def test_refresh_tokens_are_unique_per_mint(self):
        assert create_refresh_token(7) != create_refresh_token(7)

    def test_refresh_token_is_not_an_access_token(self):
        with pytest.raises(AuthenticationError):
            decode_access_token(create_refresh_token(7))

    def test_access_token_is_not_a_refresh_token(self):
        with pytest.raises(AuthenticationError):
            decode_refresh_token(create_access_token(7, 3))

    def test_signature_from_another_token_is_rejected(self):
        header, payload, _ = create_refresh_token(7).split(".")
        foreign_signature = create_refresh_token(8).split(".")[2]
        with pytest.raises(AuthenticationError):
            decode_refresh_token(f"{header}.{payload}.{foreign_signature}")
