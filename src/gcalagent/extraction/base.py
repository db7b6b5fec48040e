"""Base class for post extraction strategies."""

from abc import ABC, abstractmethod
from typing import Optional

from gcalagent.core.event_model import RawPost
from gcalagent.exceptions.errors import StrategyFailedError


class ExtractionStrategy(ABC):
    """One independent way of turning a post URL into a RawPost.

    Subclasses return None or raise to signal failure; the chain treats
    both the same way and moves on to the next strategy.
    """

    name: str = "strategy"

    def __init__(self, timeout: float):
        self.timeout = timeout

    @abstractmethod
    def try_extract(self, url: str) -> Optional[RawPost]:
        """Attempt extraction for an already validated, normalized URL."""

    def fail(self, reason: str) -> StrategyFailedError:
        return StrategyFailedError(self.name, reason)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(timeout={self.timeout})"
