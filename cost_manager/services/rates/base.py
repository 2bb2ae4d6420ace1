from __future__ import annotations

"""Rate provider abstraction and resolution result types."""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, Union

from cost_manager.models.constants import DEFAULT_RATES

RateTable = Dict[str, float]


@dataclass(frozen=True)
class Fetched:
    rates: RateTable
    url: str

    source = "fetched"
    degraded = False


@dataclass(frozen=True)
class UsedDefault:
    reason: str
    # False when no source was configured; True when a configured source failed.
    degraded: bool = True
    rates: RateTable = field(default_factory=lambda: dict(DEFAULT_RATES))

    source = "default"


RateResolution = Union[Fetched, UsedDefault]


class RateProvider(ABC):
    @abstractmethod
    def resolve(self) -> RateResolution:
        """Return the rate table to use for one aggregation."""
        raise NotImplementedError
