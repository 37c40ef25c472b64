"""
Custom exceptions for the storage URL services.
"""


class MultiBucketError(Exception):
    """Base exception for provider selection and URL generation errors."""
    pass


class ConfigurationError(MultiBucketError):
    """Malformed provider entry or configuration payload."""
    pass


class NoProvidersConfigured(MultiBucketError):
    """Selection attempted while the registry is empty."""

    def __init__(self, message: str = "No storage providers configured"):
        super().__init__(message)


class ProviderNotFound(MultiBucketError):
    """Explicit provider id or bucket lookup failed."""

    def __init__(self, message: str, provider_id: str = None, bucket: str = None):
        super().__init__(message)
        self.provider_id = provider_id
        self.bucket = bucket


class UnsupportedProviderType(MultiBucketError):
    """Provider type is not one of the supported backends."""

    def __init__(self, provider_type):
        super().__init__(f"Unsupported provider type: {provider_type}")
        self.provider_type = provider_type


class UrlGenerationFailed(MultiBucketError):
    """Signing or key construction failed. The underlying error is chained as __cause__."""

    def __init__(self, message: str, provider_id: str = None):
        super().__init__(message)
        self.provider_id = provider_id


class InvalidRequest(MultiBucketError):
    """Caller-supplied argument is invalid. Never attributed to a provider."""
    pass
