"""
Provider request shaping per model.

Some chat models reject the classic ``max_tokens`` field and want
``max_completion_tokens`` instead, and refuse a ``temperature`` value. This
module is the single place that knows which models behave that way. Rules
are matched in order: user-supplied overrides first, then the built-in
table, then the default (``max_tokens`` + temperature).

When a provider changes its parameter contract, add a rule here or via
``MERMAID_STUDIO_MODEL_PARAM_OVERRIDES``; the generation code never
special-cases model names.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Optional

logger = logging.getLogger(__name__)


class ModelConfigError(ValueError):
    """An override rule is malformed."""


@dataclass(frozen=True)
class ModelParamRule:
    """Request-shaping rule for models matching *prefix* or containing *contains*."""

    token_param: str = "max_tokens"
    supports_temperature: bool = True
    prefix: Optional[str] = None
    contains: Optional[str] = None

    def matches(self, model: str) -> bool:
        if self.prefix is not None and model.startswith(self.prefix):
            return True
        if self.contains is not None and self.contains in model:
            return True
        return False

    def __str__(self) -> str:
        target = f"prefix={self.prefix!r}" if self.prefix is not None else f"contains={self.contains!r}"
        return f"{target} tokens={self.token_param} temperature={'yes' if self.supports_temperature else 'no'}"


# ──────────────────────────────────────────────────────────────────────
# Built-in rules. Matching is done on the bare model name (provider
# routing prefix such as "openai/" stripped).
# ──────────────────────────────────────────────────────────────────────

MODEL_PARAM_RULES: tuple[ModelParamRule, ...] = (
    # GPT-5 family: new token field, fixed sampling.
    ModelParamRule(prefix="gpt-5", token_param="max_completion_tokens", supports_temperature=False),
    # o-series reasoning models.
    ModelParamRule(contains="o1", token_param="max_completion_tokens", supports_temperature=False),
    ModelParamRule(contains="o3", token_param="max_completion_tokens", supports_temperature=False),
)

_DEFAULT_RULE = ModelParamRule()


def _strip_provider_prefix(model: str) -> str:
    """Strip provider routing prefixes like 'openai/' or 'openrouter/openai/'.

    Examples:
        'openai/gpt-5'             → 'gpt-5'
        'openrouter/openai/gpt-5'  → 'gpt-5'
        'gpt-4o-mini'              → 'gpt-4o-mini'
    """
    PROVIDER_PREFIXES = ("openrouter/", "openai/", "azure/", "ollama/", "ollama_chat/", "litellm_proxy/")
    stripped = True
    while stripped:
        stripped = False
        for prefix in PROVIDER_PREFIXES:
            if model.startswith(prefix):
                model = model[len(prefix):]
                stripped = True
    return model


def parse_rules(raw_rules: Iterable[dict[str, Any]]) -> list[ModelParamRule]:
    """Build rules from config dicts.

    Each dict needs ``prefix`` or ``contains`` and may set ``token_param``
    and ``temperature`` (bool).
    """
    rules = []
    for raw in raw_rules:
        if not raw.get("prefix") and not raw.get("contains"):
            raise ModelConfigError(f"Model param rule needs 'prefix' or 'contains': {raw}")
        rules.append(ModelParamRule(
            prefix=raw.get("prefix"),
            contains=raw.get("contains"),
            token_param=raw.get("token_param", "max_tokens"),
            supports_temperature=bool(raw.get("temperature", True)),
        ))
    return rules


def resolve_rule(model: str, overrides: Iterable[ModelParamRule] = ()) -> ModelParamRule:
    """First matching rule for *model*; overrides are checked before the built-ins."""
    bare = _strip_provider_prefix(model)
    for rule in (*overrides, *MODEL_PARAM_RULES):
        if rule.matches(bare):
            logger.debug("Model %s matched rule %s", model, rule)
            return rule
    return _DEFAULT_RULE


def build_completion_params(
    model: str,
    max_tokens: int,
    temperature: Optional[float] = None,
    overrides: Iterable[ModelParamRule] = (),
) -> dict[str, Any]:
    """Token-limit and sampling kwargs for a completion call to *model*.

    ``temperature`` is dropped for models that do not accept it.
    """
    rule = resolve_rule(model, overrides)
    params: dict[str, Any] = {rule.token_param: max_tokens}
    if rule.supports_temperature and temperature is not None:
        params["temperature"] = temperature
    return params
