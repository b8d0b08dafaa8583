"""Base pool engine interface."""

from abc import ABC, abstractmethod
from typing import Dict, Any


class BasePoolEngine(ABC):
    """
    Abstract base class for pool pricing engines.

    Engines hold immutable pool parameters only. Pool state is passed in
    on every call and new state is returned, never stored.
    """

    name: str = "base"

    @abstractmethod
    def describe(self) -> Dict[str, Any]:
        """
        Pool parameters as a plain dict.

        Returns
        -------
        dict
            Parameter name to value
        """
        pass

    def __repr__(self) -> str:
        params = ", ".join(f"{k}={v!r}" for k, v in self.describe().items())
        return f"{type(self).__name__}({params})"
