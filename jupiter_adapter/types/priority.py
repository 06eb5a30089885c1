"""
Priority fee configuration
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Union

from ..errors import ConfigurationError


class PriorityFeeLevel(Enum):
    """Named priority fee levels"""
    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    VERY_HIGH = "very_high"

    @classmethod
    def from_string(cls, value: Union[str, "PriorityFeeLevel"]) -> "PriorityFeeLevel":
        if isinstance(value, PriorityFeeLevel):
            return value
        normalized = value.strip().lower().replace("-", "_")
        for level in cls:
            if level.value == normalized:
                return level
        raise ConfigurationError.invalid(
            "priority_level",
            f"Unknown priority level: {value}. Supported: none, low, medium, high, very_high",
        )


# Micro-lamports per compute unit
PRIORITY_FEES: Dict[PriorityFeeLevel, int] = {
    PriorityFeeLevel.NONE: 0,
    PriorityFeeLevel.LOW: 10_000,
    PriorityFeeLevel.MEDIUM: 100_000,
    PriorityFeeLevel.HIGH: 500_000,
    PriorityFeeLevel.VERY_HIGH: 1_000_000,
}

DEFAULT_COMPUTE_UNIT_LIMIT = 200_000


@dataclass(frozen=True)
class PriorityFeeConfig:
    """Priority fee level plus compute unit limit"""
    level: PriorityFeeLevel = PriorityFeeLevel.MEDIUM
    compute_unit_limit: int = DEFAULT_COMPUTE_UNIT_LIMIT

    @property
    def micro_lamports(self) -> int:
        """Compute unit price for this level"""
        return PRIORITY_FEES[self.level]

    @property
    def max_priority_fee_lamports(self) -> int:
        """Upper bound of the priority fee if every compute unit is used"""
        return self.micro_lamports * self.compute_unit_limit // 1_000_000

    @classmethod
    def from_level(cls, level: Union[str, PriorityFeeLevel], compute_unit_limit: int = DEFAULT_COMPUTE_UNIT_LIMIT) -> "PriorityFeeConfig":
        return cls(level=PriorityFeeLevel.from_string(level), compute_unit_limit=compute_unit_limit)
