"""Tests for YAML + environment configuration loading."""

import pytest

from ai_court.config.schemas import DEFAULT_ENDPOINT, CourtConfig, TrialConfig
from ai_court.utils.config_loader import env_overrides, load_config, merge_configs


def test_merge_configs_is_deep():
    base = {"provider": {"model": "gpt-4o", "timeout": 60}, "language": "Korean"}
    override = {"provider": {"model": "gpt-4o-mini"}}
    merged = merge_configs(base, override)
    assert merged == {"provider": {"model": "gpt-4o-mini", "timeout": 60}, "language": "Korean"}
    assert base["provider"]["model"] == "gpt-4o"


def test_defaults_without_file_or_env(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    config = load_config(environ={})
    assert config == CourtConfig.default()
    assert config.provider.endpoint == DEFAULT_ENDPOINT
    assert config.generation.max_tokens == 600
    assert config.generation.temperature == 0.8
    assert config.usage.limits == {"quickConsult": 3, "trial": 1, "document": 2}


def test_yaml_file_is_merged_over_defaults(tmp_path):
    path = tmp_path / "court.yaml"
    path.write_text(
        "language: English\n"
        "provider:\n"
        "  model: gpt-4o-mini\n"
        "trial:\n"
        "  auto_advance_delay: 0.2\n",
        encoding="utf-8",
    )
    config = load_config(str(path), environ={})
    assert config.language == "English"
    assert config.provider.model == "gpt-4o-mini"
    assert config.provider.endpoint == DEFAULT_ENDPOINT
    assert config.trial.auto_advance_delay == 0.2
    assert config.trial.auto_advance is True


def test_environment_overrides_file(tmp_path):
    path = tmp_path / "court.yaml"
    path.write_text("provider:\n  model: from-file\n", encoding="utf-8")
    config = load_config(str(path), environ={"AI_COURT_MODEL": "from-env", "OPENAI_API_KEY": "sk-env"})
    assert config.provider.model == "from-env"
    assert config.provider.api_key == "sk-env"


def test_proxy_base_wins_over_api_key():
    overrides = env_overrides({"AI_COURT_API_BASE": "https://court.example/", "OPENAI_API_KEY": "sk"})
    assert overrides == {"provider": {"endpoint": "https://court.example/api/chat"}}


def test_log_level_override():
    assert env_overrides({"AI_COURT_LOG_LEVEL": "DEBUG"}) == {"logging": {"level": "DEBUG"}}


def test_invalid_config_falls_back_to_defaults(tmp_path):
    path = tmp_path / "court.yaml"
    path.write_text("provider:\n  max_tries: 0\n", encoding="utf-8")
    assert load_config(str(path), environ={}) == CourtConfig.default()


def test_missing_file_uses_defaults(tmp_path):
    assert load_config(str(tmp_path / "absent.yaml"), environ={}) == CourtConfig.default()


def test_context_window_must_be_positive():
    with pytest.raises(ValueError):
        TrialConfig(max_context_chars=0)
