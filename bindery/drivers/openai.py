from typing import Optional


def build_openai_chat_model(api_key: str, model_name: str = "gpt-4o-mini", base_url: Optional[str] = None, temperature: float = 0.7, seed: Optional[int] = None):
    try:
        from langchain_openai import ChatOpenAI
    except ImportError:
        raise ImportError("OpenAI driver requires the 'langchain-openai' package. Install bindery[openai].")

    return ChatOpenAI(model=model_name, api_key=api_key, base_url=base_url, temperature=temperature, seed=seed)
