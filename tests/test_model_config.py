"""Tests for per-model request shaping."""

import pytest

from mermaid_studio.core.model_config import (
    ModelConfigError,
    ModelParamRule,
    build_completion_params,
    parse_rules,
    resolve_rule,
)


class TestBuildCompletionParams:

    @pytest.mark.parametrize("model", ["gpt-5", "gpt-5-mini", "openai/gpt-5", "openrouter/openai/gpt-5-nano"])
    def test_gpt5_family(self, model):
        assert build_completion_params(model, 4096, 0.7) == {"max_completion_tokens": 4096}

    @pytest.mark.parametrize("model", ["o1-preview", "o3-mini", "openai/o1"])
    def test_reasoning_models(self, model):
        assert build_completion_params(model, 100, 0.7) == {"max_completion_tokens": 100}

    @pytest.mark.parametrize("model", ["gpt-4o", "gpt-4o-mini", "anthropic/claude-3-5-sonnet-20241022"])
    def test_classic_models(self, model):
        assert build_completion_params(model, 4096, 0.7) == {"max_tokens": 4096, "temperature": 0.7}

    def test_temperature_omitted_when_none(self):
        assert build_completion_params("gpt-4o", 10) == {"max_tokens": 10}

    def test_override_wins_over_builtin(self):
        overrides = [ModelParamRule(prefix="gpt-5", token_param="max_tokens", supports_temperature=True)]
        assert build_completion_params("gpt-5", 10, 0.2, overrides) == {"max_tokens": 10, "temperature": 0.2}


class TestParseRules:

    def test_parse(self):
        rules = parse_rules([{"prefix": "gpt-6", "token_param": "max_completion_tokens", "temperature": False}])
        assert rules == [ModelParamRule(prefix="gpt-6", token_param="max_completion_tokens", supports_temperature=False)]
        assert resolve_rule("openai/gpt-6-turbo", rules) is rules[0]

    def test_defaults(self):
        (rule,) = parse_rules([{"contains": "reasoner"}])
        assert rule.token_param == "max_tokens"
        assert rule.supports_temperature is True

    def test_rule_without_matcher_rejected(self):
        with pytest.raises(ModelConfigError):
            parse_rules([{"token_param": "max_completion_tokens"}])
