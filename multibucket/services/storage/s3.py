"""S3-compatible URL signing backend (AWS S3 / Cloudflare R2)."""

from __future__ import annotations

from typing import Optional

from .interfaces import UrlOperation


class S3SigningBackend:
    """Presigns object URLs for one bucket with lazy boto3 initialization."""

    def __init__(self, *, bucket: str, region: Optional[str] = None, endpoint_url: Optional[str] = None,
                 access_key_id: Optional[str] = None, secret_access_key: Optional[str] = None,
                 use_path_style: bool = False):
        self.bucket = bucket
        self.region = region
        self.endpoint_url = endpoint_url
        self.access_key_id = access_key_id
        self.secret_access_key = secret_access_key
        self.use_path_style = use_path_style
        self._client = None

    def _get_client(self):
        if self._client is not None:
            return self._client

        import boto3
        from botocore.config import Config

        client_kwargs = {'service_name': 's3'}
        if self.region:
            client_kwargs['region_name'] = self.region
        if self.endpoint_url:
            client_kwargs['endpoint_url'] = self.endpoint_url
        if self.access_key_id:
            client_kwargs['aws_access_key_id'] = self.access_key_id
        if self.secret_access_key:
            client_kwargs['aws_secret_access_key'] = self.secret_access_key

        addressing_style = 'path' if self.use_path_style else 'auto'
        client_kwargs['config'] = Config(signature_version='s3v4', s3={'addressing_style': addressing_style})

        self._client = boto3.client(**client_kwargs)
        return self._client

    def sign(self, operation: UrlOperation, key: str, expires_seconds: int,
             content_type: Optional[str] = None) -> str:
        """Return a presigned PUT (upload) or GET (download) URL for `key`."""
        client = self._get_client()
        params = {'Bucket': self.bucket, 'Key': key}
        if operation == UrlOperation.UPLOAD:
            if content_type:
                params['ContentType'] = content_type
            client_method = 'put_object'
        else:
            client_method = 'get_object'
        return client.generate_presigned_url(
            client_method,
            Params=params,
            ExpiresIn=int(expires_seconds),
        )
