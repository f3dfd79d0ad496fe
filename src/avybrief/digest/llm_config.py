"""Briefing configuration schema, loading, and chat model factory."""

from __future__ import annotations

import json
import logging
import os
from enum import Enum
from pathlib import Path

from langchain.chat_models import init_chat_model
from langchain_core.language_models import BaseChatModel
from pydantic import BaseModel

logger = logging.getLogger(__name__)

_CONFIGS_DIR = Path(__file__).resolve().parent.parent / "configs" / "briefing"


class ContractPolicy(str, Enum):
    """Which authoring contract the model is held to.

    MENTOR cites every claim and must return a disclaimer and source URL.
    FRIENDLY is the plain "knowledgeable friend" voice without liability fields.
    """

    MENTOR = "mentor"
    FRIENDLY = "friendly"


class LLMConfig(BaseModel):
    """LLM provider and model configuration."""

    provider: str = "google_genai"
    model: str = "gemini-2.5-flash"
    temperature: float = 0.7


class PromptsConfig(BaseModel):
    """Paths to contract templates (relative to configs/briefing/)."""

    mentor: str = "prompts/mentor_v1.md"
    friendly: str = "prompts/friendly_v1.md"
    chat: str = "prompts/scout_chat_v1.md"


class BriefingConfig(BaseModel):
    """Top-level briefing configuration."""

    version: str = "1.0"
    name: str = "default"
    contract: ContractPolicy = ContractPolicy.MENTOR
    llm: LLMConfig = LLMConfig()
    prompts: PromptsConfig = PromptsConfig()

    @property
    def requires_liability_fields(self) -> bool:
        return self.contract is ContractPolicy.MENTOR

    def load_prompt(self, key: str) -> str:
        """Load prompt markdown from configs/briefing/{path}."""
        rel_path = getattr(self.prompts, key)
        prompt_path = _CONFIGS_DIR / rel_path
        return prompt_path.read_text()

    def load_contract_template(self) -> str:
        """Template for the active contract policy."""
        return self.load_prompt(self.contract.value)


def load_briefing_config(name: str | None = None) -> BriefingConfig:
    """Load a briefing config by name.

    Resolution order:
    1. Explicit name parameter
    2. AVYBRIEF_BRIEFING_CONFIG environment variable
    3. "default"
    """
    config_name = name or os.environ.get("AVYBRIEF_BRIEFING_CONFIG", "default")
    config_path = _CONFIGS_DIR / f"{config_name}.json"

    if not config_path.exists():
        raise FileNotFoundError(f"Briefing config not found: {config_path}")

    raw = json.loads(config_path.read_text())
    return BriefingConfig.model_validate(raw)


def create_llm(config: BriefingConfig) -> BaseChatModel:
    """Create a LangChain chat model from briefing config."""
    return init_chat_model(
        model=config.llm.model,
        model_provider=config.llm.provider,
        temperature=config.llm.temperature,
    )


def message_text(content: str | list) -> str:
    """Flatten a chat message's content to plain text.

    Some providers return a list of parts (strings or ``{"type": "text"}``
    dicts) instead of a single string.
    """
    if isinstance(content, str):
        return content
    parts = []
    for part in content:
        if isinstance(part, str):
            parts.append(part)
        elif isinstance(part, dict) and part.get("type") == "text":
            parts.append(part.get("text", ""))
    return "".join(parts)


class ChatModelOracle:
    """Text-generation oracle backed by a LangChain chat model.

    The model is created lazily on first use so that constructing the
    oracle (e.g. at app startup) needs no credentials.
    """

    def __init__(self, config: BriefingConfig, llm: BaseChatModel | None = None):
        self.config = config
        self._llm = llm

    @property
    def llm(self) -> BaseChatModel:
        if self._llm is None:
            self._llm = create_llm(self.config)
        return self._llm

    def generate(self, prompt: str) -> str:
        logger.info(
            "Generating briefing with %s/%s (%d chars)",
            self.config.llm.provider, self.config.llm.model, len(prompt),
        )
        result = self.llm.invoke([{"role": "user", "content": prompt}])
        return message_text(result.content)
