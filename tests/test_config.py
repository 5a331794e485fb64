"""Tests for config loading and validation."""

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from cli.config import load_config, load_config_model, write_default_config
from cli.config_models import NotifyConfig, ProviderConfig, ReminderConfig, ResolverConfig


class TestConfigModels:
    def test_defaults(self):
        config = ReminderConfig()
        assert config.stability.accuracy_ceiling_m == 20.0
        assert config.stability.stillness_threshold_m == 4.0
        assert config.stability.stability_threshold_s == 5.0
        assert config.resolver.search_radius_m == 25.0
        assert config.resolver.cache_expiry_s == 300.0
        assert config.dispatch.cooldown_s == 300.0
        assert config.notify.methods == ["console"]
        assert config.paths.db_path == Path("~/.willpower/targets.db").expanduser()

    @pytest.mark.parametrize("radius", [10, 24.9, 50.1])
    def test_radius_bounds(self, radius):
        with pytest.raises(ValidationError):
            ResolverConfig(search_radius_m=radius)

    def test_radius_upper_edge(self):
        assert ResolverConfig(search_radius_m=50).search_radius_m == 50

    def test_static_provider_needs_file(self):
        with pytest.raises(ValidationError):
            ProviderConfig(name="static")

    def test_unknown_provider(self):
        with pytest.raises(ValidationError):
            ProviderConfig(name="google")

    def test_webhook_needs_url(self):
        with pytest.raises(ValidationError):
            NotifyConfig(methods=["webhook"])

    def test_email_needs_host(self):
        with pytest.raises(ValidationError):
            NotifyConfig(methods=["email"])

    def test_unknown_notify_method(self):
        with pytest.raises(ValidationError):
            NotifyConfig(methods=["pager"])

    def test_log_level_normalized(self):
        config = ReminderConfig.from_dict({"logging": {"level": "debug"}})
        assert config.logging.level == "DEBUG"

    def test_env_expansion(self, monkeypatch):
        monkeypatch.setenv("NTFY_TOKEN", "tk_secret")
        config = ReminderConfig.from_dict({
            "notify": {
                "methods": ["webhook"],
                "webhook_url": "https://ntfy.sh/budget",
                "webhook_token": "${NTFY_TOKEN}",
            }
        })
        assert config.notify.webhook_token == "tk_secret"


class TestLoadConfig:
    def test_missing_file_gives_defaults(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr(Path, "home", lambda: tmp_path)
        assert load_config_model() == ReminderConfig()

    def test_partial_file_merges(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("dispatch:\n  cooldown_s: 60\n")
        config = load_config_model(path)
        assert config.dispatch.cooldown_s == 60
        assert config.resolver.search_radius_m == 25.0

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("dispatch: [unclosed\n")
        with pytest.raises(ValueError, match="Invalid YAML"):
            load_config_model(path)

    def test_invalid_values(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("stability:\n  accuracy_ceiling_m: -1\n")
        with pytest.raises(ValueError, match="validation failed"):
            load_config_model(path)

    def test_load_config_dict(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("resolver:\n  search_radius_m: 40\n")
        assert load_config(path)["resolver"]["search_radius_m"] == 40

    def test_write_default_round_trips(self, tmp_path):
        path = write_default_config(tmp_path / "sub" / "config.yaml")
        data = yaml.safe_load(path.read_text())
        assert ReminderConfig.from_dict(data).dispatch.cooldown_s == 300.0

    def test_write_default_keeps_existing(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("dispatch:\n  cooldown_s: 60\n")
        write_default_config(path)
        assert "cooldown_s: 60" in path.read_text()
