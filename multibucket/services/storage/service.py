"""URL generation facade on top of the provider session and signing backends."""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional, Tuple

from .exceptions import ConfigurationError, InvalidRequest, ProviderNotFound, UrlGenerationFailed
from .factory import build_signing_backend
from .interfaces import BaseProvider, GeneratedUrlResult, UrlOperation
from .keys import build_object_key, build_public_url
from .s3 import S3SigningBackend
from .session import MultiBucketSession, validate_expiry

logger = logging.getLogger(__name__)


class UrlService:
    """Chooses a provider and signs upload/read URLs against it.

    Only provider selection touches the session lock. Key construction and
    signing run on the immutable provider snapshot outside of it.
    """

    def __init__(self, session: MultiBucketSession):
        self.session = session
        self._backends: Dict[str, Tuple[BaseProvider, S3SigningBackend]] = {}
        self._backends_lock = threading.Lock()

    def _backend_for(self, provider: BaseProvider) -> S3SigningBackend:
        with self._backends_lock:
            cached = self._backends.get(provider.id)
            if cached and cached[0] == provider:
                return cached[1]
        backend = build_signing_backend(provider)
        live_ids = {p.id for p in self.session.list_providers()}
        with self._backends_lock:
            for stale_id in [pid for pid in self._backends if pid not in live_ids]:
                del self._backends[stale_id]
            self._backends[provider.id] = (provider, backend)
        return backend

    def _resolve_expiry(self, expiry_seconds: Optional[int]) -> int:
        if expiry_seconds is None:
            return self.session.default_expiry
        try:
            return validate_expiry(expiry_seconds, name='expiry')
        except ConfigurationError as exc:
            raise InvalidRequest(str(exc)) from exc

    def generate_upload_url(self, filename: str, content_type: str, expiry_seconds: Optional[int] = None,
                            path_prefix: Optional[str] = None, provider_id: Optional[str] = None) -> GeneratedUrlResult:
        """
        Create a presigned upload URL for a new, uniquely named object.

        Args:
            filename: Original file name, kept at the end of the key
            content_type: Content type the upload must be sent with
            expiry_seconds: URL lifetime; the session default when omitted
            path_prefix: Optional folder inside the bucket
            provider_id: Use this provider instead of load balancing

        Raises:
            ProviderNotFound: If provider_id does not match a provider
            InvalidRequest: If expiry_seconds is not a positive whole number
            NoProvidersConfigured: If no provider is configured
            UrlGenerationFailed: If the key cannot be built or signing fails
        """
        expiry = self._resolve_expiry(expiry_seconds)
        if provider_id:
            provider = self.session.get_provider(provider_id)
        else:
            provider = self.session.select_provider()

        try:
            key = build_object_key(filename, path_prefix)
            signed_url = self._backend_for(provider).sign(
                UrlOperation.UPLOAD, key, expiry, content_type=content_type,
            )
            public_url = build_public_url(provider, key)
        except Exception as exc:
            logger.error(f"Upload URL generation failed for provider {provider.id}: {exc}")
            raise UrlGenerationFailed(f"Failed to generate upload URL: {exc}", provider_id=provider.id) from exc

        logger.debug(f"Generated upload URL for {provider.bucket}/{key} via {provider.id}")
        return GeneratedUrlResult(
            operation=UrlOperation.UPLOAD,
            signed_url=signed_url,
            public_url=public_url,
            key=key,
            bucket=provider.bucket,
            provider_id=provider.id,
            expires_at=datetime.now(timezone.utc) + timedelta(seconds=expiry),
        )

    def generate_read_url(self, key: str, bucket: Optional[str] = None, provider_id: Optional[str] = None,
                          expiry_seconds: Optional[int] = None) -> GeneratedUrlResult:
        """
        Create a presigned download URL for an existing object.

        The provider is taken from provider_id, or else the first provider
        serving `bucket`. Read URLs do not go through load balancing.
        """
        expiry = self._resolve_expiry(expiry_seconds)
        if provider_id:
            provider = self.session.get_provider(provider_id)
        elif bucket:
            provider = self.session.find_provider_by_bucket(bucket)
        else:
            raise ProviderNotFound('Provider not found. Please specify a valid providerId or bucket')

        try:
            if not key:
                raise ValueError('key is required')
            signed_url = self._backend_for(provider).sign(UrlOperation.DOWNLOAD, key, expiry)
        except Exception as exc:
            logger.error(f"Read URL generation failed for provider {provider.id}: {exc}")
            raise UrlGenerationFailed(f"Failed to generate read URL: {exc}", provider_id=provider.id) from exc

        return GeneratedUrlResult(
            operation=UrlOperation.DOWNLOAD,
            signed_url=signed_url,
            key=key,
            bucket=provider.bucket,
            provider_id=provider.id,
            expires_at=datetime.now(timezone.utc) + timedelta(seconds=expiry),
        )

    def get_stats(self) -> dict:
        return self.session.get_stats()


_url_service_singleton: Optional[UrlService] = None
_url_service_singleton_lock = threading.Lock()


def build_session_from_env() -> MultiBucketSession:
    from multibucket.config import app_config

    return MultiBucketSession(
        strategy=app_config.LOAD_BALANCE_STRATEGY,
        default_expiry=app_config.DEFAULT_EXPIRY_SECONDS,
    )


def get_url_service() -> UrlService:
    global _url_service_singleton
    if _url_service_singleton is None:
        with _url_service_singleton_lock:
            if _url_service_singleton is None:
                _url_service_singleton = UrlService(build_session_from_env())
    return _url_service_singleton


def reset_url_service_singleton() -> None:
    global _url_service_singleton
    with _url_service_singleton_lock:
        _url_service_singleton = None
