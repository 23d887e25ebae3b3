"""
Render fallback chain.

Runs the render tiers in order for one URL and stops at the first tier
that accepts. Every attempt is recorded in ``history``.
"""

import logging
from typing import List, Optional, Sequence

from ..models import ConversionResult
from .base import RenderTier, TierOutcome

logger = logging.getLogger(__name__)

NO_TIER_ERROR = "No render tier could convert this page"


class RenderFallbackChain:
    """
    Ordered fallback over render tiers.

    Unavailable tiers are skipped without an attempt. A tier that raises is
    treated as declined. Each tier runs at most once per ``run``.

    Args:
        tiers: Tiers in the order they are tried
    """

    def __init__(self, tiers: Sequence[RenderTier]):
        self.tiers = list(tiers)
        self.history: List[TierOutcome] = []

    def run(self, url: str) -> ConversionResult:
        """
        Convert ``url`` with the first tier that accepts.

        Returns:
            The accepted result; otherwise the last declined failure, or a
            generic failure if no declined tier produced a result
        """
        self.history = []
        last_failure: Optional[ConversionResult] = None
        last_reason: Optional[str] = None

        for tier in self.tiers:
            if not tier.is_available():
                logger.debug(f"Skipping unavailable tier {tier.name}")
                continue

            logger.debug(f"Trying tier {tier.name} for {url}")
            try:
                outcome = tier.attempt(url)
            except Exception as e:
                logger.warning(f"Tier {tier.name} raised for {url}: {e}")
                outcome = TierOutcome.decline(tier.name, f"{type(e).__name__}: {e}")
            self.history.append(outcome)

            if outcome.accepted:
                logger.info(f"Tier {tier.name} converted {url}")
                return outcome.result

            logger.info(f"Tier {tier.name} declined {url}: {outcome.reason}, trying next tier")
            last_reason = outcome.reason
            if outcome.result is not None:
                last_failure = outcome.result

        if last_failure is not None:
            return last_failure

        error = f"{NO_TIER_ERROR}: {last_reason}" if last_reason else NO_TIER_ERROR
        return ConversionResult.failure(url, error)
