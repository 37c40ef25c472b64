"""Factory for building signing backends from provider snapshots."""

from __future__ import annotations

from .exceptions import UnsupportedProviderType
from .interfaces import BaseProvider, ProviderKind
from .s3 import S3SigningBackend

R2_REGION = 'auto'


def build_s3_backend(provider: BaseProvider) -> S3SigningBackend:
    return S3SigningBackend(
        bucket=provider.bucket,
        region=provider.region,
        endpoint_url=provider.endpoint,
        access_key_id=provider.access_key_id,
        secret_access_key=provider.secret_access_key,
        use_path_style=provider.force_path_style,
    )


def build_r2_backend(provider: BaseProvider) -> S3SigningBackend:
    # R2 speaks the S3 API but only supports path-style requests.
    return S3SigningBackend(
        bucket=provider.bucket,
        region=R2_REGION,
        endpoint_url=provider.endpoint,
        access_key_id=provider.access_key_id,
        secret_access_key=provider.secret_access_key,
        use_path_style=True,
    )


_BUILDERS = {
    ProviderKind.S3: build_s3_backend,
    ProviderKind.R2: build_r2_backend,
}


def build_signing_backend(provider: BaseProvider) -> S3SigningBackend:
    """Return a credential-bearing signing backend matching the provider's kind."""
    kind = getattr(provider, 'kind', None)
    builder = _BUILDERS.get(kind)
    if builder is None:
        raise UnsupportedProviderType(getattr(kind, 'value', kind))
    return builder(provider)
