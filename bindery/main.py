import argparse
import importlib

from rich.table import Table

from .app import BinderyApp, configure_logging


def load_type(path: str):
    """Resolves 'package.module:ClassName'."""
    module_name, _, attr = path.partition(":")
    if not attr:
        raise argparse.ArgumentTypeError(f"Expected module:Class, got '{path}'")
    return getattr(importlib.import_module(module_name), attr)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Bindery: typed results from unreliable LLMs")
    parser.add_argument("instruction", type=str, help="What the model should produce")
    parser.add_argument("--schema", type=load_type, default=str, help="Target type as module:Class (default: plain text)")
    parser.add_argument("--if-possible", action="store_true", help="Allow the model to report that it cannot answer")
    parser.add_argument("--model", type=str, default="qwen2.5-coder:7b", help="Model name")
    parser.add_argument("--provider", type=str, default="ollama", help="LLM Provider (ollama, openai, local)")
    parser.add_argument("--api-key", type=str, default=None)
    parser.add_argument("--base-url", type=str, default=None)
    parser.add_argument("--temperature", type=float, default=None)
    parser.add_argument("--profile", type=str, default="DEFAULT", help="Binding profile (DEFAULT, PATIENT, FAIL_FAST)")
    parser.add_argument("--max-attempts", type=int, default=None)
    parser.add_argument("--backoff-ms", type=int, default=None)
    parser.add_argument("--no-examples", action="store_true", help="Leave generated examples out of the schema guidance")
    parser.add_argument("--verbose", action="store_true")

    args = parser.parse_args(argv)
    configure_logging("INFO" if args.verbose else "WARNING")

    app = BinderyApp(
        model=args.model,
        provider=args.provider,
        binding_profile=args.profile,
        max_attempts=args.max_attempts,
        backoff_ms=args.backoff_ms,
        api_key=args.api_key,
        base_url=args.base_url,
    )

    result = app.run(
        args.instruction,
        output_type=args.schema,
        if_possible=args.if_possible,
        temperature=args.temperature,
        generate_examples=False if args.no_examples else None,
    )
    app.render(result)

    table = Table(title="LLM Invocations")
    for column in ("LLM", "Prompt", "Completion", "Total", "Time"):
        table.add_column(column)
    for inv in app.process.llm_invocations:
        estimated = "~" if inv.usage.estimated else ""
        table.add_row(
            inv.llm,
            f"{estimated}{inv.usage.prompt_tokens}",
            f"{estimated}{inv.usage.completion_tokens}",
            f"{estimated}{inv.usage.total_tokens}",
            f"{inv.running_time.total_seconds():.2f}s",
        )
    app.console.print(table)


if __name__ == "__main__":
    main()
