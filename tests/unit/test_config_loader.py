"""Tests for configuration loading and validation."""

import copy

import pytest
import yaml

from restockbot.core.config.config_loader import (
    _safe_config_summary,
    load_config,
    parse_config,
    substitute_env_vars,
)
from restockbot.core.exceptions import ConfigurationError, MissingEnvironmentVariableError


class TestSubstituteEnvVars:
    """Tests for ${VAR} substitution."""

    def test_nested_substitution(self):
        """Test placeholders are replaced in nested dicts and lists."""
        data = {"a": "${X}", "b": ["${Y}-suffix", 3], "c": {"d": "plain"}}
        result = substitute_env_vars(data, {"X": "1", "Y": "2"})
        assert result == {"a": "1", "b": ["2-suffix", 3], "c": {"d": "plain"}}

    def test_unset_variable_becomes_empty(self):
        """Test an unset variable is replaced by an empty string."""
        assert substitute_env_vars("${MISSING}", {}) == ""


class TestParseConfig:
    """Tests for parse_config."""

    def test_defaults(self, config_data):
        """Test defaults for optional sections."""
        config = parse_config(config_data, environ={})

        assert config.dry_run is False
        assert config.driver.headless is True
        assert config.driver.hostname == "http://localhost:4444"
        assert config.retailer.strategy == "api"
        assert config.retailer.verify_before_each_step is True
        assert config.retailer.auth_cookie_names == ["ut", "bm_sz", "at"]
        assert config.scheduler.max_consecutive_failures is None
        assert config.notifications.twilio is None

    def test_payment_normalization(self, config_data):
        """Test expiry month and year are normalized."""
        config = parse_config(config_data, environ={})
        assert config.payment.exp_month == "01"
        assert config.payment.exp_year == "2028"

    def test_shipping_defaults_to_billing(self, config_data):
        """Test the billing address is used for shipping when none is given."""
        config = parse_config(config_data, environ={})
        assert config.shipping_address == config.payment.billing

    def test_secrets_are_hidden(self, config_data):
        """Test secret fields do not appear in the model repr."""
        config = parse_config(config_data, environ={})
        assert "4111111111111111" not in repr(config)
        assert "hunter2" not in repr(config)

    def test_credentials_from_environment(self, config_data):
        """Test missing login fields fall back to the environment."""
        config_data["login"] = {}
        environ = {"RESTOCKBOT_USERNAME": "env@example.com", "RESTOCKBOT_PASSWORD": "envpass"}

        config = parse_config(config_data, environ=environ)

        assert config.login.username == "env@example.com"
        assert config.login.password.get_secret_value() == "envpass"

    def test_missing_credentials(self, config_data):
        """Test absent credentials in both places raise MissingEnvironmentVariableError."""
        del config_data["login"]
        with pytest.raises(MissingEnvironmentVariableError, match="RESTOCKBOT_PASSWORD") as exc:
            parse_config(config_data, environ={"RESTOCKBOT_USERNAME": "u@example.com"})

        assert isinstance(exc.value, ConfigurationError)
        assert exc.value.details == {
            "variable": "RESTOCKBOT_PASSWORD",
            "config_key": "login.password",
        }

    def test_missing_username_is_reported(self, config_data):
        """Test an empty username without its environment variable is named in the error."""
        config_data["login"] = {"password": "hunter2"}
        with pytest.raises(MissingEnvironmentVariableError, match="login.username"):
            parse_config(config_data, environ={})

    @pytest.mark.parametrize(
        "mutate",
        [
            lambda d: d.update(products=[]),
            lambda d: d.update(products=["  "]),
            lambda d: d.update(interval=0),
            lambda d: d["payment"].update(exp_month="13"),
            lambda d: d.update(retailer={"base_url": "http://insecure.example.com"}),
            lambda d: d.update(retailer={"auth_cookie_names": []}),
            lambda d: d.update(retailer={"strategy": "carrier-pigeon"}),
            lambda d: d.update(notifications={"webhook": {"url": "not a url"}}),
        ],
    )
    def test_invalid_values(self, config_data, mutate):
        """Test schema violations raise ConfigurationError."""
        data = copy.deepcopy(config_data)
        mutate(data)
        with pytest.raises(ConfigurationError) as exc_info:
            parse_config(data, environ={})
        assert exc_info.value.recoverable is False

    def test_all_accounts(self, config_data):
        """Test extra accounts follow the primary login without duplicates."""
        config_data["accounts"] = [
            {"username": "shopper@example.com", "password": "x"},
            {"username": "second@example.com", "password": "y"},
        ]
        config = parse_config(config_data, environ={})
        assert [a.username for a in config.all_accounts()] == [
            "shopper@example.com",
            "second@example.com",
        ]


class TestLoadConfig:
    """Tests for load_config."""

    def test_load_with_substitution(self, tmp_path, config_data):
        """Test a YAML file is loaded and placeholders are resolved."""
        config_data["login"] = {"username": "${USER_EMAIL}", "password": "${USER_PASS}"}
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump(config_data))

        config = load_config(str(path), environ={"USER_EMAIL": "a@b.com", "USER_PASS": "pw"})

        assert config.login.username == "a@b.com"
        assert config.products[0] == "6429440"

    def test_missing_file(self, tmp_path):
        """Test a missing file raises ConfigurationError."""
        with pytest.raises(ConfigurationError, match="not found"):
            load_config(str(tmp_path / "nope.yaml"), environ={})

    def test_invalid_yaml(self, tmp_path):
        """Test malformed YAML raises ConfigurationError."""
        path = tmp_path / "config.yaml"
        path.write_text("products: [unclosed\n")
        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            load_config(str(path), environ={})

    def test_non_mapping(self, tmp_path):
        """Test a YAML list at top level is rejected."""
        path = tmp_path / "config.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigurationError, match="mapping"):
            load_config(str(path), environ={})

    def test_example_config_is_valid(self):
        """Test the shipped example configuration validates."""
        from pathlib import Path

        example = Path(__file__).parent.parent.parent / "config" / "config.example.yaml"
        environ = {
            "RESTOCKBOT_USERNAME": "u@example.com",
            "RESTOCKBOT_PASSWORD": "pw",
            "CARD_NUMBER": "4111111111111111",
            "CARD_CVV": "123",
        }
        config = load_config(str(example), environ=environ)
        assert config.dry_run is True
        assert len(config.products) == 2


class TestSafeConfigSummary:
    """Tests for masked config logging."""

    def test_sensitive_keys_are_redacted(self):
        """Test secrets are replaced while other values are kept."""
        summary = _safe_config_summary(
            {
                "login": {"username": "u", "password": "p"},
                "payment": {"card_number": "4111", "cvv": "123", "exp_month": "01"},
                "interval": 20,
            }
        )
        assert summary["login"]["password"] == "[REDACTED]"
        assert summary["payment"]["card_number"] == "[REDACTED]"
        assert summary["payment"]["cvv"] == "[REDACTED]"
        assert summary["interval"] == 20
