"""Multi-provider presigned URL generation with load balancing."""

from .exceptions import (
    ConfigurationError,
    InvalidRequest,
    MultiBucketError,
    NoProvidersConfigured,
    ProviderNotFound,
    UnsupportedProviderType,
    UrlGenerationFailed,
)
from .factory import build_signing_backend
from .interfaces import (
    BaseProvider,
    GeneratedUrlResult,
    ProviderKind,
    R2Provider,
    S3Provider,
    SelectionStrategy,
    UrlOperation,
    UsageRecord,
)
from .keys import build_object_key, build_public_url, normalize_path_prefix
from .providers import merge_provider, parse_provider
from .selector import ProviderSelector
from .service import UrlService, get_url_service, reset_url_service_singleton
from .session import MultiBucketSession

__all__ = [
    'ConfigurationError',
    'InvalidRequest',
    'MultiBucketError',
    'NoProvidersConfigured',
    'ProviderNotFound',
    'UnsupportedProviderType',
    'UrlGenerationFailed',
    'build_signing_backend',
    'BaseProvider',
    'GeneratedUrlResult',
    'ProviderKind',
    'R2Provider',
    'S3Provider',
    'SelectionStrategy',
    'UrlOperation',
    'UsageRecord',
    'build_object_key',
    'build_public_url',
    'normalize_path_prefix',
    'merge_provider',
    'parse_provider',
    'ProviderSelector',
    'UrlService',
    'get_url_service',
    'reset_url_service_singleton',
    'MultiBucketSession',
]
