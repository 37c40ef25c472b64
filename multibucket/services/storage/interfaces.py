"""Provider, usage and result dataclasses shared by the storage services."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, ClassVar, Dict, Optional

DEFAULT_WEIGHT = 1.0
DEFAULT_RATE_LIMIT = 1000.0


class ProviderKind(str, Enum):
    """Storage backends that can sign URLs."""
    S3 = 's3'
    R2 = 'r2'


class SelectionStrategy(str, Enum):
    """Load balancing policies understood by the selector."""
    ROUND_ROBIN = 'round-robin'
    LEAST_USED = 'least-used'
    LEAST_ERRORS = 'least-errors'
    WEIGHTED_RANDOM = 'weighted-random'


class UrlOperation(str, Enum):
    UPLOAD = 'upload'
    DOWNLOAD = 'download'


@dataclass(frozen=True)
class BaseProvider:
    """Common attributes of a configured storage backend.

    Instances are immutable snapshots; the session replaces them on every
    configuration merge, so they can be handed to callers outside the lock.
    """

    KIND: ClassVar[ProviderKind]

    id: str
    bucket: str
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = field(default=None, repr=False)
    weight: float = DEFAULT_WEIGHT
    rate_limit: float = DEFAULT_RATE_LIMIT
    public_url_base: Optional[str] = None

    @property
    def kind(self) -> ProviderKind:
        return self.KIND

    def to_config(self) -> Dict[str, Any]:
        """Serialize back into the configuration payload shape (camelCase keys)."""
        data: Dict[str, Any] = {
            'id': self.id,
            'type': self.KIND.value,
            'bucket': self.bucket,
            'weight': self.weight,
            'rateLimit': self.rate_limit,
        }
        if self.access_key_id is not None:
            data['accessKeyId'] = self.access_key_id
        if self.secret_access_key is not None:
            data['secretAccessKey'] = self.secret_access_key
        if self.public_url_base is not None:
            data['publicUrlBase'] = self.public_url_base
        return data


@dataclass(frozen=True)
class S3Provider(BaseProvider):
    """AWS S3 (or any S3-compatible service addressed like AWS)."""

    KIND: ClassVar[ProviderKind] = ProviderKind.S3

    region: str = ''
    endpoint: Optional[str] = None
    force_path_style: bool = False

    def to_config(self) -> Dict[str, Any]:
        data = super().to_config()
        data['region'] = self.region
        data['forcePathStyle'] = self.force_path_style
        if self.endpoint is not None:
            data['endpoint'] = self.endpoint
        return data


@dataclass(frozen=True)
class R2Provider(BaseProvider):
    """Cloudflare R2. Always path-style, region 'auto'."""

    KIND: ClassVar[ProviderKind] = ProviderKind.R2

    endpoint: str = ''

    @property
    def force_path_style(self) -> bool:
        return True

    def to_config(self) -> Dict[str, Any]:
        data = super().to_config()
        data['endpoint'] = self.endpoint
        return data


@dataclass
class UsageRecord:
    """Live counters for one provider. Only mutated under the session lock."""

    request_count: int = 0
    error_count: int = 0
    last_used_at: float = 0.0  # epoch seconds, 0 = never selected
    rate_limit: float = DEFAULT_RATE_LIMIT

    @property
    def min_interval(self) -> float:
        return 1.0 / self.rate_limit

    @property
    def error_rate(self) -> float:
        return self.error_count / max(self.request_count, 1)

    def is_available(self, now: float) -> bool:
        return now - self.last_used_at >= self.min_interval


@dataclass(frozen=True)
class GeneratedUrlResult:
    """Signed URL plus the metadata a client needs to use it."""

    operation: UrlOperation
    signed_url: str
    key: str
    bucket: str
    provider_id: str
    expires_at: datetime
    public_url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        expires = self.expires_at.isoformat(timespec='milliseconds').replace('+00:00', 'Z')
        if self.operation == UrlOperation.UPLOAD:
            return {
                'uploadUrl': self.signed_url,
                'publicUrl': self.public_url,
                'key': self.key,
                'bucket': self.bucket,
                'provider': self.provider_id,
                'expires': expires,
            }
        return {
            'readUrl': self.signed_url,
            'key': self.key,
            'bucket': self.bucket,
            'provider': self.provider_id,
            'expires': expires,
        }
