from abc import ABC, abstractmethod
from datetime import datetime


class IClock(ABC):
    """Source of "now" for every time-based rule, injectable so sweeps run deterministically in tests"""

    @abstractmethod
    def now(self) -> datetime:
        """Current instant, timezone-aware UTC"""
        pass
