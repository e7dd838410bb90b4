import random
from abc import ABC, abstractmethod
from typing import Optional


class FaultInjector(ABC):
    """Decides the artificial latency and outcome of a single backend call."""

    @abstractmethod
    def delay(self) -> float:
        """Seconds to suspend the call before deciding its outcome."""
        raise NotImplementedError

    @abstractmethod
    def should_fail(self) -> bool:
        raise NotImplementedError


class RandomFaultInjector(FaultInjector):
    """Uniform latency in [min_latency, max_latency] and Bernoulli failures with probability failure_rate."""

    def __init__(
        self,
        min_latency: float,
        max_latency: float,
        failure_rate: float,
        seed: Optional[int] = None,
    ) -> None:
        if min_latency < 0 or max_latency < 0:
            raise ValueError("Latency bounds must be non-negative")
        if min_latency > max_latency:
            raise ValueError("min_latency must not exceed max_latency")
        if not 0.0 <= failure_rate <= 1.0:
            raise ValueError("failure_rate must be within [0, 1]")
        self.min_latency = min_latency
        self.max_latency = max_latency
        self.failure_rate = failure_rate
        self._random = random.Random(seed)

    def delay(self) -> float:
        return self._random.uniform(self.min_latency, self.max_latency)

    def should_fail(self) -> bool:
        return self._random.random() < self.failure_rate


class StaticFaultInjector(FaultInjector):
    """Fixed delay and outcome, for tests and local runs without chaos."""

    def __init__(self, delay_seconds: float = 0.0, fail: bool = False) -> None:
        self.delay_seconds = delay_seconds
        self.fail = fail

    def delay(self) -> float:
        return self.delay_seconds

    def should_fail(self) -> bool:
        return self.fail
