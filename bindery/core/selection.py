import logging
import random
from dataclasses import dataclass
from typing import Dict, List, Optional, Protocol, Sequence, Tuple, Union

from .errors import NoSuitableModelException
from .models import Llm

logger = logging.getLogger("bindery.selection")

# --- Selection Criteria (closed family) ---

@dataclass(frozen=True)
class DefaultModelSelectionCriteria:
    """Use whatever the provider considers its default model."""


@dataclass(frozen=True)
class AutoModelSelectionCriteria:
    """Let an AutoLlmSelectionCriteriaResolver choose."""


@dataclass(frozen=True)
class ByNameModelSelectionCriteria:
    name: str


@dataclass(frozen=True)
class ByRoleModelSelectionCriteria:
    role: str


@dataclass(frozen=True)
class FallbackByNameModelSelectionCriteria:
    """First name that the provider knows wins."""
    names: Tuple[str, ...]

    def __init__(self, names: Sequence[str]):
        object.__setattr__(self, "names", tuple(names))


@dataclass(frozen=True)
class RandomModelSelectionCriteria:
    pass


ModelSelectionCriteria = Union[
    DefaultModelSelectionCriteria,
    AutoModelSelectionCriteria,
    ByNameModelSelectionCriteria,
    ByRoleModelSelectionCriteria,
    FallbackByNameModelSelectionCriteria,
    RandomModelSelectionCriteria,
]

DEFAULT_CRITERIA = DefaultModelSelectionCriteria()


# --- Auto Resolution ---

class AutoLlmSelectionCriteriaResolver(Protocol):
    def resolve_auto_llm(self) -> ModelSelectionCriteria:
        ...


class DefaultAutoLlmSelectionCriteriaResolver:
    def resolve_auto_llm(self) -> ModelSelectionCriteria:
        return DEFAULT_CRITERIA


DEFAULT_AUTO_RESOLVER = DefaultAutoLlmSelectionCriteriaResolver()


class PreferredModelsAutoResolver:
    """
    Picks the first preferred model the provider actually has.
    Falls back to the provider default when none of them are available.
    """

    def __init__(self, provider: "ModelProvider", preferred: Sequence[str]):
        self.provider = provider
        self.preferred = list(preferred)

    def resolve_auto_llm(self) -> ModelSelectionCriteria:
        available = set(self.provider.list_llm_names())
        for name in self.preferred:
            if name in available:
                return ByNameModelSelectionCriteria(name)
        logger.debug(f"None of {self.preferred} available, using default model")
        return DEFAULT_CRITERIA


def resolve_criteria(
    criteria: Optional[ModelSelectionCriteria],
    auto_resolver: AutoLlmSelectionCriteriaResolver = DEFAULT_AUTO_RESOLVER,
) -> ModelSelectionCriteria:
    """Normalises the caller's criteria. Explicit criteria pass through untouched."""
    if criteria is None:
        return DEFAULT_CRITERIA
    if isinstance(criteria, AutoModelSelectionCriteria):
        return auto_resolver.resolve_auto_llm()
    return criteria


# --- Provider ---

class ModelProvider:
    """
    Holds the concrete Llm handles a process may call.
    Lookup is a pure function of the criteria and the registered models.
    """

    def __init__(self, llms: List[Llm], default_llm: Optional[str] = None, roles: Optional[Dict[str, str]] = None):
        if not llms:
            raise ValueError("ModelProvider requires at least one Llm.")
        self._llms: Dict[str, Llm] = {llm.name: llm for llm in llms}
        self.default_llm = default_llm or llms[0].name
        if self.default_llm not in self._llms:
            raise ValueError(f"Default LLM '{self.default_llm}' is not registered.")
        self.roles = dict(roles or {})

    def list_llm_names(self) -> List[str]:
        return list(self._llms.keys())

    def list_roles(self) -> List[str]:
        return list(self.roles.keys())

    def get_llm(self, criteria: ModelSelectionCriteria) -> Llm:
        if isinstance(criteria, DefaultModelSelectionCriteria):
            return self._llms[self.default_llm]

        if isinstance(criteria, ByNameModelSelectionCriteria):
            llm = self._llms.get(criteria.name)
            if llm:
                return llm

        elif isinstance(criteria, ByRoleModelSelectionCriteria):
            name = self.roles.get(criteria.role)
            if name and name in self._llms:
                return self._llms[name]

        elif isinstance(criteria, FallbackByNameModelSelectionCriteria):
            for name in criteria.names:
                if name in self._llms:
                    return self._llms[name]

        elif isinstance(criteria, RandomModelSelectionCriteria):
            return random.choice(list(self._llms.values()))

        elif isinstance(criteria, AutoModelSelectionCriteria):
            # Auto must be resolved before it reaches the provider
            raise TypeError("AutoModelSelectionCriteria must be resolved with resolve_criteria() first.")

        raise NoSuitableModelException(criteria, self.list_llm_names())
