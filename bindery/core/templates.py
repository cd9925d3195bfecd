import logging
from typing import Any, Dict, Mapping, Optional, Protocol

from .errors import TemplateNotFoundError, TemplateRenderError
from ..presets.prompts import BUILTIN_TEMPLATES

logger = logging.getLogger("bindery.templates")


class TemplateRenderer(Protocol):
    def render_loaded_template(self, name: str, model: Mapping[str, Any]) -> str:
        ...


class PromptTemplateRenderer:
    """
    Minimal in-process renderer for named str.format templates.
    Preloaded with the built-in templates; callers may register or override more.
    """

    def __init__(self, templates: Optional[Dict[str, str]] = None, include_builtins: bool = True):
        self.templates: Dict[str, str] = dict(BUILTIN_TEMPLATES) if include_builtins else {}
        if templates:
            self.templates.update(templates)

    def register_template(self, name: str, template: str):
        self.templates[name] = template
        logger.debug(f"Registered template: {name}")

    def render_loaded_template(self, name: str, model: Mapping[str, Any]) -> str:
        if name not in self.templates:
            raise TemplateNotFoundError(f"Template '{name}' not found. Known: {sorted(self.templates)}")
        try:
            return self.templates[name].format(**model).strip()
        except KeyError as e:
            raise TemplateRenderError(f"Template '{name}' needs variable {e} which was not supplied.") from e
