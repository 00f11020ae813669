"""Generation client: turns a natural-language instruction into Mermaid text.

Stateless request/response wrapper around a chat completion provider,
called through LiteLLM. The model name comes from the settings store and
the API key from the credential store, both read on every call.
"""

import logging
from typing import Any, Optional

from ..core.model_config import ModelParamRule, build_completion_params
from ..exceptions import CredentialMissingError, GenerationError, ProviderError
from .credential_service import CredentialService
from .settings_service import SettingsService

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are an expert at creating Mermaid diagrams. Your task is to generate valid Mermaid diagram code based on the user's description.

RULES:
- Return ONLY the Mermaid diagram code, no explanations or markdown code blocks
- Ensure the diagram syntax is valid and will render correctly
- Use appropriate diagram types: flowchart, sequence, class, state, ER, gantt, pie, etc.
- Keep diagrams clear and well-organized
- Use meaningful node names and labels
- Add proper connections with clear labels where appropriate

SUPPORTED DIAGRAM TYPES:
- flowchart/graph (TD, LR, TB, RL) - for flow diagrams
- sequenceDiagram - for interactions between participants
- classDiagram - for class structures and relationships
- stateDiagram-v2 - for state machines
- erDiagram - for entity relationships
- gantt - for project timelines
- pie - for pie charts
- mindmap - for mind maps
"""

CREATE_INSTRUCTION = "Create a new diagram from scratch based on the user's description."

MODIFY_TEMPLATE = (
    "\nCURRENT DIAGRAM TO MODIFY:\n```\n{existing}\n```\n\n"
    "Modify the above diagram based on the user's request. Keep existing structure where possible."
)

TEST_PROMPT = 'Say "Hello from the diagram assistant!" in exactly those words.'
TEST_MAX_TOKENS = 50


def build_system_prompt(existing_content: Optional[str] = None) -> str:
    """Fixed preamble plus either the modify block or the from-scratch sentence."""
    if existing_content:
        return SYSTEM_PROMPT + "\n" + MODIFY_TEMPLATE.format(existing=existing_content)
    return SYSTEM_PROMPT + "\n" + CREATE_INSTRUCTION


def strip_code_fence(text: str) -> str:
    """Remove a ```mermaid / ``` wrapper and surrounding whitespace."""
    content = text.strip()
    if content.startswith("```mermaid"):
        content = content[len("```mermaid"):]
    elif content.startswith("```"):
        content = content[3:]
    if content.endswith("```"):
        content = content[:-3]
    return content.strip()


class GenerationService:
    """Sends instructions to the completion provider and cleans the reply."""

    def __init__(
        self,
        settings: SettingsService,
        credentials: CredentialService,
        timeout: float = 120.0,
        max_tokens: int = 4096,
        temperature: float = 0.7,
        param_overrides: tuple[ModelParamRule, ...] = (),
    ):
        self.settings = settings
        self.credentials = credentials
        self.timeout = timeout
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.param_overrides = param_overrides

    def _complete(self, messages: list[dict[str, str]], max_tokens: int) -> tuple[str, Optional[str]]:
        """Run one completion. Returns (model, reply content or None)."""
        api_key = self.credentials.get_api_key()
        if not api_key:
            raise CredentialMissingError()

        model = self.settings.get_model()
        chat_kwargs: dict[str, Any] = {
            "model": model,
            "api_key": api_key,
            "messages": messages,
            "timeout": self.timeout,
            **build_completion_params(model, max_tokens, self.temperature, self.param_overrides),
        }
        api_base = self.settings.get_api_base()
        if api_base:
            chat_kwargs["api_base"] = api_base

        try:
            import litellm

            response = litellm.completion(**chat_kwargs)
        except Exception as e:
            logger.exception("Completion request failed", extra={"model": model})
            raise ProviderError(str(e) or "Completion request failed", model=model) from e

        choices = getattr(response, "choices", None) or []
        content = choices[0].message.content if choices else None
        return model, content

    def generate(self, prompt: str, existing_content: Optional[str] = None) -> str:
        """Generate a new diagram, or modify *existing_content*, from *prompt*.

        Raises:
            CredentialMissingError: no API key configured.
            ProviderError: the provider call failed.
            GenerationError: the provider returned no content.
        """
        messages = [
            {"role": "system", "content": build_system_prompt(existing_content)},
            {"role": "user", "content": prompt},
        ]
        model, content = self._complete(messages, self.max_tokens)

        if not content or not content.strip():
            logger.warning("Provider returned empty diagram content", extra={"model": model})
            raise GenerationError()

        diagram = strip_code_fence(content)
        logger.info(
            "Generated diagram",
            extra={"model": model, "modify": bool(existing_content), "chars": len(diagram)},
        )
        return diagram

    def test_connection(self) -> dict[str, str]:
        """Send a fixed short prompt. Returns ``{"model", "message"}``."""
        model, content = self._complete([{"role": "user", "content": TEST_PROMPT}], TEST_MAX_TOKENS)
        return {"model": model, "message": content or "No response"}
