"""Unit tests for API key authentication."""

from unittest.mock import patch

import pytest

from sleepplan_guard.core.auth import parse_api_keys, validate_api_key, verify_api_key
from sleepplan_guard.core.errors import AuthenticationAppError


class TestParseAPIKeys:
    """API key list parsing."""

    def test_parse_multiple_keys_with_whitespace(self) -> None:
        assert parse_api_keys("key1 , key2  ,  key3") == {"key1", "key2", "key3"}

    def test_parse_removes_duplicates(self) -> None:
        assert parse_api_keys("key1,key2,key1") == {"key1", "key2"}

    @pytest.mark.parametrize("value", [None, "", "   ,  ,  "])
    def test_parse_empty_inputs(self, value) -> None:
        assert parse_api_keys(value) == set()


class TestValidateAPIKey:
    """Core API key validation logic."""

    @patch("sleepplan_guard.core.auth.settings")
    def test_validate_bypassed_when_auth_disabled(self, mock_settings) -> None:
        mock_settings.app.api_key_required = False

        validate_api_key("any-random-key")
        validate_api_key(None)

    @patch("sleepplan_guard.core.auth.settings")
    def test_validate_raises_when_no_keys_configured(self, mock_settings) -> None:
        mock_settings.app.api_key_required = True
        mock_settings.app.api_keys = None

        with pytest.raises(AuthenticationAppError) as exc_info:
            validate_api_key("some-key")

        assert exc_info.value.code == "api_keys_not_configured"

    @patch("sleepplan_guard.core.auth.settings")
    def test_validate_accepts_trimmed_configured_keys(self, mock_settings) -> None:
        mock_settings.app.api_key_required = True
        mock_settings.app.api_keys = " key1 , key2 "

        validate_api_key("key1")
        validate_api_key("key2")

        with pytest.raises(AuthenticationAppError):
            validate_api_key(" key1 ")

    @patch("sleepplan_guard.core.auth.settings")
    def test_validate_rejects_missing_key(self, mock_settings) -> None:
        mock_settings.app.api_key_required = True
        mock_settings.app.api_keys = "valid-key"

        with pytest.raises(AuthenticationAppError) as exc_info:
            validate_api_key("")

        assert exc_info.value.code == "missing_api_key"

    @patch("sleepplan_guard.core.auth.settings")
    def test_validate_rejects_invalid_key(self, mock_settings) -> None:
        mock_settings.app.api_key_required = True
        mock_settings.app.api_keys = "valid-key-1,valid-key-2"

        with pytest.raises(AuthenticationAppError) as exc_info:
            validate_api_key("invalid-key")

        assert exc_info.value.code == "invalid_api_key"


class TestVerifyAPIKeyDependency:
    """FastAPI dependency wrapper."""

    @pytest.mark.asyncio
    @patch("sleepplan_guard.core.auth.settings")
    async def test_verify_bypassed_when_auth_disabled(self, mock_settings) -> None:
        mock_settings.app.api_key_required = False

        await verify_api_key(x_api_key=None)

    @pytest.mark.asyncio
    @patch("sleepplan_guard.core.auth.settings")
    async def test_verify_accepts_valid_key(self, mock_settings) -> None:
        mock_settings.app.api_key_required = True
        mock_settings.app.api_keys = "my-valid-key,another-key"

        await verify_api_key(x_api_key="my-valid-key")
        await verify_api_key(x_api_key="another-key")

    @pytest.mark.asyncio
    @patch("sleepplan_guard.core.auth.settings")
    async def test_verify_raises_for_missing_header(self, mock_settings) -> None:
        mock_settings.app.api_key_required = True
        mock_settings.app.api_keys = "valid-key"

        with pytest.raises(AuthenticationAppError) as exc_info:
            await verify_api_key(x_api_key=None)

        assert "Missing API key" in exc_info.value.message
