from datetime import date
from typing import Any, List, Optional

from ..core.models import Llm
from ..core.prompts import PromptContributor


def get_chat_model(
    provider: str,
    model: str,
    api_key: Optional[str] = None,
    base_url: Optional[str] = None,
    **kwargs
) -> Any:
    """
    Factory to return a langchain chat model for the provider.
    """
    provider = provider.lower()

    if provider == "ollama":
        from .ollama import build_ollama_chat_model
        return build_ollama_chat_model(model_name=model, **kwargs)

    elif provider == "openai":
        from .openai import build_openai_chat_model
        if not api_key and not base_url:
            raise ValueError("OpenAI provider requires an API key or a local base_url.")
        return build_openai_chat_model(api_key=api_key or "local-no-key", model_name=model, base_url=base_url, **kwargs)

    elif provider == "local":
        from .openai import build_openai_chat_model
        # OpenAI-compatible local server (LM Studio, vLLM, llama.cpp)
        url = base_url or "http://localhost:1234/v1"
        return build_openai_chat_model(api_key=api_key or "local", model_name=model, base_url=url, **kwargs)

    else:
        raise ValueError(f"Unknown provider: {provider}")


def build_llm(
    provider: str,
    model: str,
    name: Optional[str] = None,
    prompt_contributors: Optional[List[PromptContributor]] = None,
    knowledge_cutoff_date: Optional[date] = None,
    **kwargs
) -> Llm:
    """Builds a chat model and wraps it in an Llm handle."""
    return Llm(
        name=name or model,
        model=get_chat_model(provider, model, **kwargs),
        provider=provider.lower(),
        prompt_contributors=list(prompt_contributors or []),
        knowledge_cutoff_date=knowledge_cutoff_date,
    )
