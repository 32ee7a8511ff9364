"""Tests for configuration loading."""

import dataclasses
import json

import pytest

from patchpilot_core.config import (
    ReviewConfig,
    config_from_dict,
    default_config_document,
    load_config,
    load_config_file,
)


def test_defaults_applied_when_no_config_file():
    config = load_config(None, environ={})
    assert config.provider == "openai"
    assert config.model == "gpt-4o-mini"
    assert config.temperature == 0.2
    assert config.max_patch_chars == 20000
    assert config.max_comments == 30
    assert config.target_globs == ("src/**", "lib/**")
    assert config.tests_enabled is True
    assert config.docs_enabled is True


def test_empty_text_uses_defaults():
    assert load_config("   \n", environ={}) == ReviewConfig()


def test_config_file_overrides_defaults():
    text = json.dumps(
        {
            "model": "gpt-4o",
            "temperature": 0,
            "review": {"maxPatchChars": 5000, "maxComments": 10, "targetGlobs": ["app/**"]},
            "tests": {"enabled": False},
            "docs": {"enabled": False},
        }
    )
    config = load_config(text, environ={})
    assert config.model == "gpt-4o"
    assert config.temperature == 0.0
    assert config.max_patch_chars == 5000
    assert config.max_comments == 10
    assert config.target_globs == ("app/**",)
    assert config.tests_enabled is False
    assert config.docs_enabled is False


def test_tests_disabled_leaves_everything_else_default():
    config = load_config('{"tests":{"enabled":false}}', environ={})
    assert config.tests_enabled is False
    assert config.docs_enabled is True
    assert config.max_comments == 30


def test_malformed_json_falls_back_to_defaults():
    assert load_config('{"model": ', environ={}) == ReviewConfig()


def test_non_object_document_falls_back_to_defaults():
    assert load_config("[1, 2, 3]", environ={}) == ReviewConfig()
    assert load_config("just some prose", environ={}) == ReviewConfig()


def test_ill_typed_keys_keep_their_defaults():
    text = json.dumps(
        {
            "model": 42,
            "temperature": "hot",
            "review": {"maxPatchChars": "big", "maxComments": 0, "targetGlobs": "src/**"},
            "tests": "yes",
        }
    )
    assert load_config(text, environ={}) == ReviewConfig()


def test_boolean_is_not_a_temperature():
    assert load_config('{"temperature": true}', environ={}).temperature == 0.2


def test_tab_indented_json_is_honoured():
    text = '{\n\t"tests": {\n\t\t"enabled": false\n\t},\n\t"review": {\n\t\t"maxComments": 5\n\t}\n}'
    config = load_config(text, environ={})
    assert config.tests_enabled is False
    assert config.max_comments == 5


def test_exponent_number_is_a_number():
    assert load_config('{"temperature": 1e-1}', environ={}).temperature == pytest.approx(0.1)


def test_yaml_is_accepted():
    config = load_config("model: gpt-4.1\nreview:\n  maxComments: 5\n", environ={})
    assert config.model == "gpt-4.1"
    assert config.max_comments == 5


def test_provider_switch_selects_provider_default_model():
    config = load_config('{"provider": "anthropic"}', environ={})
    assert config.provider == "anthropic"
    assert "claude" in config.model


def test_explicit_model_wins_over_provider_default():
    config = load_config('{"provider": "anthropic", "model": "claude-3-5-haiku-latest"}', environ={})
    assert config.model == "claude-3-5-haiku-latest"


def test_unknown_provider_ignored():
    assert load_config('{"provider": "gemini"}', environ={}).provider == "openai"


def test_env_vars_loaded():
    env = {"OPENAI_API_KEY": "oai-key", "OPENAI_ORG_ID": "org", "ANTHROPIC_API_KEY": "ant-key"}
    config = load_config('{"model": "gpt-4o"}', environ=env)
    assert config.openai_api_key == "oai-key"
    assert config.openai_org_id == "org"
    assert config.anthropic_api_key == "ant-key"


def test_credentials_not_in_repr():
    config = load_config(None, environ={"OPENAI_API_KEY": "sk-secret"})
    assert "sk-secret" not in repr(config)


def test_config_is_immutable():
    config = ReviewConfig()
    with pytest.raises(dataclasses.FrozenInstanceError):
        config.max_comments = 5


@pytest.mark.parametrize("max_comments,cap", [(30, 30), (100, 60), (1, 1)])
def test_prompt_comment_cap_is_clamped(max_comments, cap):
    assert ReviewConfig(max_comments=max_comments).prompt_comment_cap == cap


def test_config_from_dict_overlays_base():
    base = ReviewConfig(max_comments=5)
    config = config_from_dict({"docs": {"enabled": False}}, base)
    assert config.max_comments == 5
    assert config.docs_enabled is False


def test_load_config_file(tmp_path):
    cfg = tmp_path / "config.json"
    cfg.write_text('{"review": {"maxComments": 3}}')
    assert load_config_file(str(cfg), environ={}).max_comments == 3


def test_missing_config_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config_file(str(tmp_path / "does-not-exist.json"), environ={})


def test_default_document_round_trips_to_defaults():
    assert load_config(json.dumps(default_config_document()), environ={}) == ReviewConfig()
