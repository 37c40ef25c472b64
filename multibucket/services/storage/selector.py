"""
Load balancing policies for choosing a storage provider.

The selector is not thread-safe on its own. MultiBucketSession calls it while
holding the session lock, so the decision and the usage update it performs
happen as one unit.
"""

import logging
import random
from typing import Callable, Dict, List, Optional

from .exceptions import NoProvidersConfigured
from .interfaces import BaseProvider, SelectionStrategy, UsageRecord

logger = logging.getLogger(__name__)


class ProviderSelector:
    """
    Picks one provider per call according to the active strategy.

    Round-robin keeps a single cursor for the whole process. The cursor is not
    adjusted when providers are added or removed, so the provider that gets the
    next turn can shift after a configuration merge.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self.cursor = 0
        self._rng = rng or random.Random()
        self._strategies: Dict[str, Callable[[List[BaseProvider], Dict[str, UsageRecord]], BaseProvider]] = {
            SelectionStrategy.ROUND_ROBIN.value: self._round_robin,
            SelectionStrategy.LEAST_USED.value: self._least_used,
            SelectionStrategy.LEAST_ERRORS.value: self._least_errors,
            SelectionStrategy.WEIGHTED_RANDOM.value: self._weighted_random,
        }

    @staticmethod
    def is_known_strategy(strategy: str) -> bool:
        return strategy in {s.value for s in SelectionStrategy}

    def select(self, strategy: str, providers: List[BaseProvider],
               usage: Dict[str, UsageRecord], now: float) -> BaseProvider:
        """
        Choose a provider, apply the rate gate and record the selection.

        Args:
            strategy: Strategy name; unknown names always return the first provider
            providers: Providers in configuration order
            usage: Usage records keyed by provider id (mutated)
            now: Current time in epoch seconds

        Returns:
            The provider whose usage record was incremented

        Raises:
            NoProvidersConfigured: If providers is empty
        """
        if not providers:
            raise NoProvidersConfigured()

        pick = self._strategies.get(strategy, self._first)
        candidate = pick(providers, usage)

        if not usage[candidate.id].is_available(now):
            for provider in providers:
                if usage[provider.id].is_available(now):
                    logger.debug(f"Provider {candidate.id} is rate limited, using {provider.id} instead")
                    candidate = provider
                    break
            # No provider under its limit: the rate limit is advisory, keep the candidate.

        record = usage[candidate.id]
        record.request_count += 1
        record.last_used_at = now
        return candidate

    def _first(self, providers, usage):
        return providers[0]

    def _round_robin(self, providers, usage):
        index = self.cursor % len(providers)
        self.cursor = (index + 1) % len(providers)
        return providers[index]

    def _least_used(self, providers, usage):
        best = providers[0]
        for provider in providers[1:]:
            if usage[provider.id].request_count < usage[best.id].request_count:
                best = provider
        return best

    def _least_errors(self, providers, usage):
        # Providers with no requests have rate 0 and win until they have a baseline.
        best = providers[0]
        for provider in providers[1:]:
            if usage[provider.id].error_rate < usage[best.id].error_rate:
                best = provider
        return best

    def _weighted_random(self, providers, usage):
        weights = [max(p.weight, 0.0) for p in providers]
        draw = self._rng.random() * sum(weights)
        cumulative = 0.0
        for provider, weight in zip(providers, weights):
            cumulative += weight
            if cumulative > draw:
                return provider
        # Float rounding can leave the sum just short of the draw.
        return providers[0]
