"""Build typed provider snapshots from configuration payload entries."""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from .exceptions import ConfigurationError, UnsupportedProviderType
from .interfaces import DEFAULT_RATE_LIMIT, DEFAULT_WEIGHT, BaseProvider, ProviderKind, R2Provider, S3Provider


def _clean_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ('1', 'true', 'yes', 'on')
    return bool(value)


def _as_number(entry: Mapping[str, Any], name: str, default: float) -> float:
    raw = entry.get(name)
    if raw is None:
        return default
    if isinstance(raw, bool):
        raise ConfigurationError(f"Provider '{entry.get('id')}': {name} must be a number")
    try:
        return float(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Provider '{entry.get('id')}': {name} must be a number, got {raw!r}") from exc


def parse_provider(entry: Mapping[str, Any]) -> BaseProvider:
    """
    Validate one provider entry and return the matching provider variant.

    Args:
        entry: Provider dict in the configuration payload shape
            (id, type, bucket, region, endpoint, accessKeyId, secretAccessKey,
            weight, rateLimit, publicUrlBase, forcePathStyle)

    Returns:
        S3Provider or R2Provider

    Raises:
        UnsupportedProviderType: If the type is not s3 or r2
        ConfigurationError: If a required field is missing or malformed
    """
    if not isinstance(entry, Mapping):
        raise ConfigurationError(f"Provider entry must be an object, got {type(entry).__name__}")

    provider_id = _clean_str(entry.get('id'))
    if not provider_id:
        raise ConfigurationError("Provider entry is missing 'id'")

    raw_type = entry.get('type')
    try:
        kind = ProviderKind(str(raw_type).strip().lower())
    except ValueError:
        raise UnsupportedProviderType(raw_type) from None

    bucket = _clean_str(entry.get('bucket'))
    if not bucket:
        raise ConfigurationError(f"Provider '{provider_id}' is missing 'bucket'")

    # Unset weight means 1; an explicit 0 or negative weight is never picked by weighted-random.
    weight = _as_number(entry, 'weight', DEFAULT_WEIGHT)

    # rateLimit of 0 falls back to the default, negatives are rejected.
    rate_limit = _as_number(entry, 'rateLimit', DEFAULT_RATE_LIMIT) or DEFAULT_RATE_LIMIT
    if rate_limit < 0:
        raise ConfigurationError(f"Provider '{provider_id}': rateLimit must be positive, got {rate_limit}")

    common = dict(
        id=provider_id,
        bucket=bucket,
        access_key_id=_clean_str(entry.get('accessKeyId')),
        secret_access_key=_clean_str(entry.get('secretAccessKey')),
        weight=weight,
        rate_limit=rate_limit,
        public_url_base=_clean_str(entry.get('publicUrlBase')),
    )

    if kind == ProviderKind.S3:
        region = _clean_str(entry.get('region'))
        if not region:
            raise ConfigurationError(f"S3 provider '{provider_id}' is missing 'region'")
        return S3Provider(
            region=region,
            endpoint=_clean_str(entry.get('endpoint')),
            force_path_style=_as_bool(entry.get('forcePathStyle', False)),
            **common,
        )

    endpoint = _clean_str(entry.get('endpoint'))
    if not endpoint:
        raise ConfigurationError(f"R2 provider '{provider_id}' is missing 'endpoint'")
    return R2Provider(endpoint=endpoint, **common)


def merge_provider(existing: BaseProvider, incoming: Mapping[str, Any]) -> BaseProvider:
    """Overlay an incoming partial entry on an existing provider. Incoming values win."""
    merged: Dict[str, Any] = existing.to_config()
    merged.update(incoming)
    return parse_provider(merged)
