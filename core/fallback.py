"""
Backend-fallback pipeline.

Each image tool runs its transform through three tiers in fixed order:

    primary (OpenCV / Pillow) -> secondary (NumPy raster) -> mock (passthrough)

A tier that raises hands over to the next one. The mock tier never fails:
it returns no pixels, so the caller sends the original upload unchanged.
There is no retry and no timeout at this layer.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional

import numpy as np

from core.enums import ProcessingTier

logger = logging.getLogger(__name__)


@dataclass
class TierOutcome:
    """Pixels produced by one tier plus the labels it applied."""

    image: Optional[np.ndarray]
    labels: List[str] = field(default_factory=list)


@dataclass
class FallbackResult:
    """Winning tier outcome and the failures that led to it."""

    outcome: TierOutcome
    tier: ProcessingTier
    errors: List[str] = field(default_factory=list)

    @property
    def is_mock(self) -> bool:
        return self.tier == ProcessingTier.MOCK


Tier = Callable[[], TierOutcome]


def with_fallback(primary: Tier, secondary: Tier, mock: Tier, operation: str = "processing") -> FallbackResult:
    """
    Run ``primary``, then ``secondary``, then ``mock`` until one succeeds.

    Args:
        primary: Library pipeline tier
        secondary: Raw raster tier
        mock: Passthrough tier; must not raise
        operation: Name used in log messages

    Returns:
        FallbackResult recording which tier produced the outcome

    Example:
        >>> result = with_fallback(run_opencv, run_numpy, passthrough, "crop")
        >>> result.tier
        <ProcessingTier.PRIMARY: 'primary'>
    """
    errors: List[str] = []

    for tier, runner in ((ProcessingTier.PRIMARY, primary), (ProcessingTier.SECONDARY, secondary)):
        try:
            outcome = runner()
        except Exception as e:
            logger.warning(f"{operation}: {tier.value} tier failed: {e}")
            errors.append(f"{tier.value}: {e}")
            continue
        if tier != ProcessingTier.PRIMARY:
            logger.info(f"{operation}: completed with {tier.value} tier")
        return FallbackResult(outcome=outcome, tier=tier, errors=errors)

    logger.warning(f"{operation}: all processing tiers failed, returning original image")
    return FallbackResult(outcome=mock(), tier=ProcessingTier.MOCK, errors=errors)
