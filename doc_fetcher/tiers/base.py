"""
Base Render Tier

Abstract base class for the ways a generic webpage can be turned into an
artifact. Each tier is one attempt; the chain decides the order and stops
at the first tier that accepts.

This is the ONLY contract between the chain and the tiers.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from ..models import ConversionResult

logger = logging.getLogger(__name__)


@dataclass
class TierOutcome:
    """
    What one tier attempt produced.

    An accepted outcome ends the chain with its result. A declined outcome
    lets the chain move on; it may still carry a failed result, which the
    chain reports if no later tier accepts.
    """

    tier: str
    accepted: bool
    result: Optional[ConversionResult] = None
    reason: Optional[str] = None

    @classmethod
    def accept(cls, tier: str, result: ConversionResult) -> "TierOutcome":
        return cls(tier=tier, accepted=True, result=result)

    @classmethod
    def decline(cls, tier: str, reason: str, result: Optional[ConversionResult] = None) -> "TierOutcome":
        return cls(tier=tier, accepted=False, result=result, reason=reason)

    def __repr__(self) -> str:
        status = "accepted" if self.accepted else f"declined: {self.reason}"
        return f"TierOutcome({self.tier}, {status})"


class RenderTier(ABC):
    """
    One strategy for converting a webpage.

    Knows how to:
    - Tell whether it can run at all (browser present, credentials set)
    - Attempt the conversion of one URL

    Does NOT:
    - Decide what runs next (the chain does that)
    - Raise for ordinary failures (return a declined outcome instead)
    """

    name: str = "tier"

    def is_available(self) -> bool:
        """
        Whether this tier can run in the current environment.

        Unavailable tiers are skipped without an attempt.
        """
        return True

    @abstractmethod
    def attempt(self, url: str) -> TierOutcome:
        """
        Try to convert ``url``.

        Args:
            url: Webpage URL

        Returns:
            Accepted outcome with a successful result, or a declined outcome
        """
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name='{self.name}')"
