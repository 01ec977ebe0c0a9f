"""
Tests for the config module.

Tests cover:
- Duration string parsing
- Required settings
- Transport selection and validation
- Optional settings and defaults
"""

import os
from unittest.mock import patch

import pytest

from page_watcher.config import Config, ConfigError, load_config, parse_duration


@pytest.fixture
def discord_env():
    return {
        "WEBSITE_URL": "https://x.test/shop",
        "SEARCH_TEXT": "in stock",
        "DISCORD_WEBHOOK": "https://discord.test/api/webhooks/1/abc",
    }


@pytest.fixture
def email_env():
    return {
        "WEBSITE_URL": "https://x.test/shop",
        "SEARCH_TEXT": "in stock",
        "SMTP_HOST": "smtp.example.com",
        "EMAIL_FROM": "watcher@example.com",
        "EMAIL_TO": "a@example.com, b@example.com",
    }


def load_with(env):
    """Load config from exactly the given environment, ignoring any .env file."""
    with patch.dict(os.environ, env, clear=True):
        with patch("page_watcher.config.load_dotenv"):
            return load_config()


class TestParseDuration:
    """Tests for duration parsing."""

    def test_simple_units(self):
        assert parse_duration("5m") == 300
        assert parse_duration("30s") == 30
        assert parse_duration("2h") == 7200

    def test_sub_second_units(self):
        assert parse_duration("300ms") == pytest.approx(0.3)
        assert parse_duration("1500us") == pytest.approx(0.0015)

    def test_compound(self):
        assert parse_duration("1h30m") == 5400
        assert parse_duration("1m30s") == 90

    def test_decimal(self):
        assert parse_duration("1.5h") == 5400
        assert parse_duration(".5m") == 30

    def test_zero_and_sign(self):
        assert parse_duration("0") == 0
        assert parse_duration("-5m") == -300
        assert parse_duration("+5m") == 300

    def test_out_of_range(self):
        with pytest.raises(ValueError, match="out of range"):
            parse_duration("99999999999999h")
        with pytest.raises(ValueError):
            parse_duration("-99999999999999h")

    def test_upper_bound_accepted(self):
        assert parse_duration("2562047h") == 2562047 * 3600

    @pytest.mark.parametrize("value", ["", "  ", "5", "m", "5x", "1h30", "five minutes", "+", "5 m"])
    def test_invalid(self, value):
        with pytest.raises(ValueError):
            parse_duration(value)


class TestLoadConfig:
    """Tests for environment configuration."""

    def test_discord_config(self, discord_env):
        config = load_with(discord_env)

        assert isinstance(config, Config)
        assert config.website_url == "https://x.test/shop"
        assert config.search_text == "in stock"
        assert config.check_interval == 300
        assert config.discord_configured is True
        assert config.email_configured is False

    def test_email_config(self, email_env):
        config = load_with(email_env)

        assert config.email_configured is True
        assert config.email_to == ("a@example.com", "b@example.com")
        assert config.smtp_port == 587
        assert config.smtp_starttls is True

    @pytest.mark.parametrize("missing", ["WEBSITE_URL", "SEARCH_TEXT"])
    def test_missing_required(self, discord_env, missing):
        del discord_env[missing]
        with pytest.raises(ConfigError, match=missing):
            load_with(discord_env)

    def test_search_text_keeps_surrounding_spaces(self, discord_env):
        discord_env["SEARCH_TEXT"] = " in stock "
        assert load_with(discord_env).search_text == " in stock "

    def test_blank_search_text(self, discord_env):
        discord_env["SEARCH_TEXT"] = "   "
        with pytest.raises(ConfigError, match="SEARCH_TEXT"):
            load_with(discord_env)

    def test_huge_interval_rejected(self, discord_env):
        discord_env["CHECK_INTERVAL"] = "99999999999999h"
        with pytest.raises(ConfigError, match="CHECK_INTERVAL"):
            load_with(discord_env)

    def test_no_transport(self, discord_env):
        del discord_env["DISCORD_WEBHOOK"]
        with pytest.raises(ConfigError, match="DISCORD_WEBHOOK or SMTP_HOST"):
            load_with(discord_env)

    @pytest.mark.parametrize("missing", ["EMAIL_FROM", "EMAIL_TO"])
    def test_incomplete_email(self, email_env, missing):
        del email_env[missing]
        with pytest.raises(ConfigError, match=missing):
            load_with(email_env)

    def test_custom_interval(self, discord_env):
        discord_env["CHECK_INTERVAL"] = "1h30m"
        assert load_with(discord_env).check_interval == 5400

    @pytest.mark.parametrize("value", ["soon", "10", "0s", "-1m"])
    def test_bad_interval(self, discord_env, value):
        discord_env["CHECK_INTERVAL"] = value
        with pytest.raises(ConfigError, match="CHECK_INTERVAL"):
            load_with(discord_env)

    def test_bad_smtp_port(self, email_env):
        email_env["SMTP_PORT"] = "smtp"
        with pytest.raises(ConfigError, match="SMTP_PORT"):
            load_with(email_env)

    def test_bad_request_timeout(self, discord_env):
        discord_env["REQUEST_TIMEOUT"] = "0"
        with pytest.raises(ConfigError, match="REQUEST_TIMEOUT"):
            load_with(discord_env)

    def test_optional_flags(self, email_env):
        email_env.update({
            "SMTP_PORT": "465",
            "SMTP_USER": "user",
            "SMTP_PASSWORD": "secret",
            "SMTP_STARTTLS": "false",
            "DRY_RUN": "true",
            "RUN_ONCE": "1",
            "REQUEST_TIMEOUT": "10",
        })
        config = load_with(email_env)

        assert config.smtp_port == 465
        assert config.smtp_user == "user"
        assert config.smtp_password == "secret"
        assert config.smtp_starttls is False
        assert config.dry_run is True
        assert config.run_once is True
        assert config.request_timeout == 10

    def test_dotenv_loaded(self, discord_env):
        with patch.dict(os.environ, discord_env, clear=True):
            with patch("page_watcher.config.load_dotenv") as mock_load:
                load_config("custom.env")

        mock_load.assert_called_once_with("custom.env", override=False)

    def test_config_is_frozen(self, discord_env):
        config = load_with(discord_env)
        with pytest.raises(Exception):
            config.search_text = "other"
