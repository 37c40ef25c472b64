"""Object key and public URL helpers."""

from __future__ import annotations

from typing import Optional
from uuid import uuid4

from .interfaces import BaseProvider, ProviderKind

AWS_S3_DOMAIN = 'amazonaws.com'


def normalize_path_prefix(path: Optional[str]) -> str:
    """Strip one leading and one trailing slash from a key prefix."""
    prefix = (path or '').strip()
    if prefix.startswith('/'):
        prefix = prefix[1:]
    if prefix.endswith('/'):
        prefix = prefix[:-1]
    return prefix


def build_object_key(filename: str, path: Optional[str] = None) -> str:
    """Return '<uuid>-<filename>', nested under the normalized prefix when one is given."""
    if not filename:
        raise ValueError('filename is required to build an object key')
    name = f"{uuid4()}-{filename}"
    prefix = normalize_path_prefix(path)
    return f"{prefix}/{name}" if prefix else name


def build_public_url(provider: BaseProvider, key: str) -> Optional[str]:
    """
    Non-expiring URL for an object, when the provider exposes one.

    A configured publicUrlBase always wins. Otherwise S3 uses the AWS
    virtual-hosted pattern and R2 has no public URL.
    """
    if provider.public_url_base:
        return f"{provider.public_url_base.rstrip('/')}/{key}"
    if provider.kind == ProviderKind.S3:
        return f"https://{provider.bucket}.s3.{provider.region}.{AWS_S3_DOMAIN}/{key}"
    return None
