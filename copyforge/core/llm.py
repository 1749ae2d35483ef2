"""
Chat model and embedding factories.

Model ids use the gateway form "provider/model", e.g.
"anthropic/claude-sonnet-4-5-20250929" or "openai/gpt-4o". A bare model name
is treated as Anthropic when it starts with "claude", OpenAI otherwise.
"""
from typing import Any, Optional, Tuple, cast
import logging

from langchain_core.embeddings import Embeddings
from langchain_core.language_models.chat_models import BaseChatModel

from copyforge.config import settings

logger = logging.getLogger(__name__)

SUPPORTED_PROVIDERS = {"anthropic", "openai"}


def split_model_id(model_id: str) -> Tuple[str, str]:
    """Return (provider, model_name) for a gateway-style model id"""
    if "/" in model_id:
        provider, name = model_id.split("/", 1)
        provider = provider.strip().lower()
    else:
        name = model_id
        provider = "anthropic" if model_id.startswith("claude") else "openai"
    if provider not in SUPPORTED_PROVIDERS:
        raise ValueError(f"Unsupported model provider: {provider}")
    return provider, name.strip()


def make_chat_model(
    model_id: Optional[str] = None,
    temperature: Optional[float] = None,
    *,
    max_retries: Optional[int] = None,
    timeout: Optional[float] = None,
) -> BaseChatModel:
    """Build a LangChain chat model for a "provider/model" id."""
    provider, name = split_model_id(model_id or settings.default_chat_model)
    if temperature is None:
        temperature = settings.llm_temperature
    if max_retries is None:
        max_retries = settings.llm_max_retries
    if timeout is None:
        timeout = settings.llm_timeout

    logger.info(
        "LLM_FACTORY provider=%s model=%s temperature=%s max_retries=%s timeout=%s",
        provider, name, temperature, max_retries, timeout,
    )

    if provider == "anthropic":
        from langchain_anthropic import ChatAnthropic
        AnthropicCls: Any = ChatAnthropic
        return cast(
            BaseChatModel,
            AnthropicCls(
                model=name,
                temperature=temperature,
                max_retries=max_retries,
                timeout=timeout,
                api_key=settings.anthropic_api_key,
            ),
        )

    from langchain_openai import ChatOpenAI
    OpenAICls: Any = ChatOpenAI
    return cast(
        BaseChatModel,
        OpenAICls(
            model=name,
            temperature=temperature,
            max_retries=max_retries,
            timeout=timeout,
            api_key=settings.openai_api_key,
        ),
    )


def make_embeddings(model: Optional[str] = None) -> Embeddings:
    from langchain_openai import OpenAIEmbeddings
    return OpenAIEmbeddings(
        model=model or settings.embedding_model,
        api_key=settings.openai_api_key,
    )
