import functools
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Sequence

from .errors import ToolNotFoundError

logger = logging.getLogger("bindery.tools")


def tool_name(tool: Any) -> str:
    return getattr(tool, "name", None) or getattr(tool, "__name__", repr(tool))


class ToolRegistry:
    """Name -> tool lookup used when the model asks for a tool call."""

    def __init__(self, tools: Sequence[Any] = ()):
        self.tools: Dict[str, Any] = {}
        for tool in tools:
            self.register_tool(tool_name(tool), tool)

    def register_tool(self, name: str, tool: Any):
        self.tools[name] = tool
        logger.debug(f"Registered tool: {name}")

    def execute(self, name: str, **kwargs) -> Any:
        if name not in self.tools:
            raise ToolNotFoundError(f"Tool '{name}' not found in registry.")
        tool = self.tools[name]
        logger.info(f"Executing tool: {name} with args {kwargs}")
        # langchain tools take their arguments as a single dict
        if hasattr(tool, "invoke"):
            return tool.invoke(kwargs)
        return tool(**kwargs)

    def get_tool_names(self) -> List[str]:
        return list(self.tools.keys())


class ToolDecorator(ABC):
    """Makes tools aware of the process that is calling them."""

    @abstractmethod
    def decorate(self, tool: Any, agent_process: Any) -> Any:
        pass

    def decorate_all(self, tools: Sequence[Any], agent_process: Any) -> List[Any]:
        return [self.decorate(t, agent_process) for t in tools]


class IdentityToolDecorator(ToolDecorator):
    def decorate(self, tool: Any, agent_process: Any) -> Any:
        return tool


class LoggingToolDecorator(ToolDecorator):
    """Wraps plain callables so each invocation is logged against the agent."""

    def decorate(self, tool: Any, agent_process: Any) -> Any:
        if hasattr(tool, "invoke") or not callable(tool):
            return tool
        agent_name = getattr(agent_process, "agent_name", "unknown")

        @functools.wraps(tool)
        def wrapper(*args, **kwargs):
            logger.info(f"[{agent_name}] tool {tool_name(tool)} called with {kwargs or args}")
            return tool(*args, **kwargs)

        return wrapper
