"""Lock-guarded provider registry, usage tracker and load balancing settings."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import replace
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from .exceptions import ConfigurationError, ProviderNotFound
from .interfaces import BaseProvider, SelectionStrategy, UsageRecord
from .providers import merge_provider, parse_provider
from .selector import ProviderSelector

logger = logging.getLogger(__name__)

DEFAULT_STRATEGY = SelectionStrategy.ROUND_ROBIN.value
DEFAULT_EXPIRY_SECONDS = 3600


def validate_expiry(value: Any, name: str = 'defaultExpiry') -> int:
    """Coerce an expiry to a positive whole number of seconds."""
    message = f"{name} must be a positive integer, got {value!r}"
    if isinstance(value, bool):
        raise ConfigurationError(message)
    try:
        expiry = int(value)
    except (TypeError, ValueError, OverflowError) as exc:
        raise ConfigurationError(message) from exc
    if isinstance(value, float) and not value.is_integer():
        raise ConfigurationError(message)
    if expiry <= 0:
        raise ConfigurationError(message)
    return expiry


class MultiBucketSession:
    """
    Owns every piece of mutable state used for provider selection.

    All reads and writes go through a single lock. Callers only ever receive
    immutable provider snapshots and copies of usage data.
    """

    def __init__(self, providers: Optional[Iterable[Mapping[str, Any]]] = None,
                 strategy: Optional[str] = None, default_expiry: Optional[int] = None,
                 clock: Callable[[], float] = time.time, selector: Optional[ProviderSelector] = None):
        self._lock = threading.Lock()
        self._clock = clock
        self._selector = selector or ProviderSelector()
        self._providers: List[BaseProvider] = []
        self._usage: Dict[str, UsageRecord] = {}
        self._strategy = DEFAULT_STRATEGY
        self._default_expiry = DEFAULT_EXPIRY_SECONDS
        self.apply_config(list(providers or []), strategy=strategy, default_expiry=default_expiry)

    # --- Read accessors ---

    @property
    def strategy(self) -> str:
        with self._lock:
            return self._strategy

    @property
    def default_expiry(self) -> int:
        with self._lock:
            return self._default_expiry

    @property
    def provider_count(self) -> int:
        with self._lock:
            return len(self._providers)

    def list_providers(self) -> List[BaseProvider]:
        with self._lock:
            return list(self._providers)

    def get_usage(self, provider_id: str) -> Optional[UsageRecord]:
        """Return a copy of the provider's usage record, or None."""
        with self._lock:
            record = self._usage.get(provider_id)
            return replace(record) if record else None

    def get_provider(self, provider_id: str) -> BaseProvider:
        with self._lock:
            for provider in self._providers:
                if provider.id == provider_id:
                    return provider
        raise ProviderNotFound(f"Provider not found: {provider_id}", provider_id=provider_id)

    def find_provider_by_bucket(self, bucket: str) -> BaseProvider:
        with self._lock:
            for provider in self._providers:
                if provider.bucket == bucket:
                    return provider
        raise ProviderNotFound(f"No provider configured for bucket: {bucket}", bucket=bucket)

    # --- Selection and usage ---

    def select_provider(self) -> BaseProvider:
        """Pick a provider with the active strategy and record the selection atomically."""
        with self._lock:
            return self._selector.select(self._strategy, self._providers, self._usage, self._clock())

    def record_error(self, provider_id: str) -> bool:
        """Increment the error count of a provider. Unknown ids are ignored."""
        with self._lock:
            record = self._usage.get(provider_id)
            if record is None:
                logger.debug(f"Ignoring error report for unknown provider: {provider_id}")
                return False
            record.error_count += 1
            return True

    def get_stats(self) -> Dict[str, Any]:
        """Snapshot of usage counters. Does not mutate state."""
        with self._lock:
            provider_stats = []
            for provider in self._providers:
                record = self._usage[provider.id]
                provider_stats.append({
                    'id': provider.id,
                    'type': provider.kind.value,
                    'requestCount': record.request_count,
                    'errorCount': record.error_count,
                    'errorRate': (f"{record.error_count / record.request_count:.4f}"
                                  if record.request_count > 0 else '0'),
                })
            return {
                'providerCount': len(self._providers),
                'totalRequests': sum(s['requestCount'] for s in provider_stats),
                'providerStats': provider_stats,
            }

    # --- Configuration ---

    def apply_config(self, providers: Iterable[Mapping[str, Any]], remove_stale: bool = False,
                     strategy: Optional[str] = None, default_expiry: Optional[int] = None) -> None:
        """
        Merge providers and settings into the registry as one atomic update.

        Args:
            providers: Provider entries in the configuration payload shape.
                Entries matching an existing id are merged field by field,
                others are added with fresh usage records.
            remove_stale: Drop existing providers (and their usage) missing from `providers`
            strategy: New load balancing strategy, if given
            default_expiry: New default URL expiry in seconds, if given

        Raises:
            ConfigurationError: If any entry or setting is invalid. Nothing is applied.
            UnsupportedProviderType: If an entry has an unknown type. Nothing is applied.
        """
        entries = list(providers)
        new_expiry = validate_expiry(default_expiry) if default_expiry is not None else None
        if strategy is not None and not isinstance(strategy, str):
            raise ConfigurationError(f"loadBalanceStrategy must be a string, got {type(strategy).__name__}")
        if strategy is not None and not ProviderSelector.is_known_strategy(strategy):
            logger.warning(f"Unknown load balance strategy '{strategy}', the first provider will always be used")

        with self._lock:
            updated = list(self._providers)
            usage = dict(self._usage)
            index_by_id = {p.id: i for i, p in enumerate(updated)}
            incoming_ids = set()
            added = changed = 0

            for entry in entries:
                if not isinstance(entry, Mapping):
                    raise ConfigurationError(f"Provider entry must be an object, got {type(entry).__name__}")
                provider_id = str(entry.get('id') or '').strip()
                if provider_id in index_by_id:
                    position = index_by_id[provider_id]
                    provider = merge_provider(updated[position], entry)
                    updated[position] = provider
                    usage[provider.id] = replace(usage[provider.id], rate_limit=provider.rate_limit)
                    changed += 1
                else:
                    provider = parse_provider(entry)
                    index_by_id[provider.id] = len(updated)
                    updated.append(provider)
                    usage[provider.id] = UsageRecord(rate_limit=provider.rate_limit)
                    added += 1
                incoming_ids.add(provider.id)

            removed = 0
            if remove_stale:
                kept = [p for p in updated if p.id in incoming_ids]
                removed = len(updated) - len(kept)
                for provider in updated:
                    if provider.id not in incoming_ids:
                        usage.pop(provider.id, None)
                updated = kept

            # Everything validated; publish.
            self._providers = updated
            self._usage = usage
            if strategy is not None:
                self._strategy = strategy
            if new_expiry is not None:
                self._default_expiry = new_expiry

        logger.info(f"Configuration applied: {added} added, {changed} updated, {removed} removed, "
                    f"{len(updated)} providers, strategy={self.strategy}")

    def update_config(self, payload: Mapping[str, Any]) -> None:
        """Apply a configuration payload ({providers, removeStaleProviders, loadBalanceStrategy, defaultExpiry})."""
        if not isinstance(payload, Mapping):
            raise ConfigurationError(f"Configuration payload must be an object, got {type(payload).__name__}")
        providers = payload.get('providers')
        if providers is not None and not isinstance(providers, list):
            raise ConfigurationError("'providers' must be a list")
        self.apply_config(
            providers or [],
            # removeStaleProviders is ignored unless providers is present.
            remove_stale=providers is not None and bool(payload.get('removeStaleProviders', False)),
            strategy=payload.get('loadBalanceStrategy') or None,
            default_expiry=payload.get('defaultExpiry') or None,
        )
