from langchain_ollama import ChatOllama


def build_ollama_chat_model(model_name: str = "qwen2.5-coder:7b", temperature: float = 0.1, num_ctx: int = 8192, **kwargs) -> ChatOllama:
    """
    Local Ollama transport. JSON mode is left off: the binding layer heals
    fenced or chatty output itself, and plain-text generation must stay possible.
    """
    return ChatOllama(
        model=model_name,
        temperature=temperature,
        num_ctx=num_ctx,
        keep_alive="5m",
        **kwargs,
    )
