"""
Domain error taxonomy for the market-data core.
Zero external dependencies.

ProviderError and ValidationError are recovered inside the provider chain and
never cross it. ChainExhaustedError is only raised by callers that opt in via
ProviderResult.unwrap(). StaleDataWarning is a value attached to snapshots,
not an exception.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from btc_tracker.domain.entities.market_data import ProviderFailure


class MarketDataError(Exception):
    """Base class for market-data failures."""


class ProviderError(MarketDataError):
    """Network failure, timeout, non-2xx status or unparseable body."""


class ValidationError(MarketDataError):
    """Provider output failed plausibility checks."""


class InsufficientDataError(ValidationError):
    """Fewer than two valid points survived normalization."""


class ChainExhaustedError(MarketDataError):
    def __init__(self, message: str, failures: tuple["ProviderFailure", ...] = ()) -> None:
        super().__init__(message)
        self.failures = failures


class HeadlineUnavailableError(Exception):
    """The headline model returned no usable text or could not be reached."""


@dataclass(frozen=True)
class StaleDataWarning:
    last_good_at_ms: int
    reasons: tuple[str, ...]
