"""
Domain entity: a personal on-chain activity journal entry.
Zero external dependencies.
"""

from dataclasses import dataclass
from enum import Enum


class JournalKind(str, Enum):
    TRANSFER = "transfer"
    LIQUIDITY = "liquidity"
    STAKING = "staking"
    SWAP = "swap"
    BRIDGE = "bridge"
    OTHER = "other"

    @classmethod
    def parse(cls, value: object) -> "JournalKind":
        """Unknown or missing kinds fall back to OTHER."""
        try:
            return cls(value)
        except ValueError:
            return cls.OTHER


class Intensity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def parse(cls, value: object) -> "Intensity":
        """Unknown or missing intensities fall back to MEDIUM."""
        try:
            return cls(value)
        except ValueError:
            return cls.MEDIUM


@dataclass(frozen=True)
class JournalEntry:
    id: str
    created_at: str  # ISO-8601 UTC, e.g. 2024-04-20T00:09:00.000Z
    title: str
    notes: str
    date: str = ""
    kind: JournalKind = JournalKind.OTHER
    chain: str = ""
    protocol: str = ""
    amount: str = ""
    token: str = ""
    intensity: Intensity = Intensity.MEDIUM
