"""Tests for secret masking utilities."""

from __future__ import annotations

import logging
import sys

import httpx
import pytest

from libs.common.log_sanitizer import (
    SecretMaskingFilter,
    clear_registered_secrets,
    mask_secrets,
    redact_url,
    register_secret,
)


class TestSecretRegistry:
    def test_registered_secret_is_masked(self) -> None:
        register_secret("abc123")

        assert mask_secrets("GET /current.json?key=abc123&q=Rio") == "GET /current.json?key=***&q=Rio"

    def test_empty_secret_is_ignored(self) -> None:
        register_secret("")

        assert mask_secrets("nothing to hide") == "nothing to hide"

    def test_longest_secret_masked_first(self) -> None:
        register_secret("abc")
        register_secret("abcdef")

        assert mask_secrets("token=abcdef") == "token=***"

    def test_clear_forgets_secrets(self) -> None:
        register_secret("abc123")
        clear_registered_secrets()

        assert mask_secrets("abc123") == "abc123"


class TestRedactUrl:
    @pytest.mark.parametrize(
        ("url", "expected"),
        [
            (
                "https://api.weatherapi.com/v1/current.json?key=abc&q=Rio",
                "https://api.weatherapi.com/v1/current.json?key=***&q=Rio",
            ),
            (
                "https://api.weatherapi.com/v1/current.json?q=Rio&KEY=abc",
                "https://api.weatherapi.com/v1/current.json?q=Rio&KEY=***",
            ),
            ("https://viacep.com.br/ws/01001-000/json/", "https://viacep.com.br/ws/01001-000/json/"),
            ("https://example.com/?key=", "https://example.com/?key=***"),
        ],
    )
    def test_masks_sensitive_params(self, url: str, expected: str) -> None:
        assert redact_url(url) == expected

    def test_custom_params_and_mask(self) -> None:
        assert redact_url("https://x.test/?q=Rio&key=abc", params={"q"}, mask="REDACTED") == (
            "https://x.test/?q=REDACTED&key=abc"
        )

    def test_accepts_httpx_url(self) -> None:
        url = httpx.URL("https://api.weatherapi.com/v1/current.json", params={"key": "abc", "q": "São Paulo"})

        redacted = redact_url(url)

        assert "abc" not in redacted
        assert "key=***" in redacted

    def test_registered_secret_in_path_is_masked(self) -> None:
        register_secret("s3cret")

        assert redact_url("https://x.test/s3cret/resource") == "https://x.test/***/resource"


class TestSecretMaskingFilter:
    def make_record(self, msg: str, args: tuple = (), **extra: object) -> logging.LogRecord:
        record = logging.LogRecord("test", logging.ERROR, __file__, 1, msg, args, None)
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_masks_rendered_message(self) -> None:
        register_secret("abc123")
        record = self.make_record("calling %s", ("https://x.test/?key=abc123",))

        assert SecretMaskingFilter().filter(record) is True
        assert record.getMessage() == "calling https://x.test/?key=***"
        assert record.args is None

    def test_masks_nested_context(self) -> None:
        register_secret("abc123")
        record = self.make_record("failed", context={"url": "?key=abc123", "attempts": [1, "abc123"]})

        SecretMaskingFilter().filter(record)

        assert record.context == {"url": "?key=***", "attempts": [1, "***"]}

    def test_masks_exception_text(self) -> None:
        register_secret("abc123")
        try:
            raise ValueError("bad key abc123")
        except ValueError:
            record = self.make_record("failed")
            record.exc_info = sys.exc_info()

        SecretMaskingFilter().filter(record)

        assert "abc123" not in record.exc_text
        assert "bad key ***" in record.exc_text

    def test_noop_without_secrets(self) -> None:
        record = self.make_record("value %s", ("x",))

        SecretMaskingFilter().filter(record)

        assert record.args == ("x",)
