"""Custom exceptions for the Qiniu artifact storage backend."""


class QiniuArtifactsError(Exception):
    """Base exception for all backend errors."""
    pass


class ConfigurationError(QiniuArtifactsError, ValueError):
    """Raised when the backend configuration is unusable."""
    pass


class MissingFieldError(ConfigurationError):
    """Raised when a required credential or bucket field is empty."""

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"{field} must not be empty")


class MalformedEndpointError(ConfigurationError):
    """Raised when a domain is not a valid host name."""

    def __init__(self, role: str, value: str):
        self.role = role
        self.value = value
        super().__init__(f"Invalid {role}: '{value}' is not a valid host")


class NoDownloadDomainError(ConfigurationError):
    """Raised when no download domain is configured and the bucket has none bound."""

    def __init__(self, bucket_name: str):
        self.bucket_name = bucket_name
        super().__init__(
            f"Bucket {bucket_name} is not bound with any download domain. "
            "Bind a domain to the bucket or set download_domain explicitly."
        )


class RemoteError(QiniuArtifactsError):
    """Raised when the storage provider rejects or fails a request.

    The provider's diagnostic text is kept verbatim in ``message``.
    """

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        self.status_code = status_code
        if status_code is None:
            super().__init__(message)
        else:
            super().__init__(f"[{status_code}] {message}")


class RemoteAuthError(RemoteError):
    """Provider rejected the credentials or denied access to the bucket."""
    pass


class RemoteUnavailableError(RemoteError):
    """Provider could not be reached or failed to answer."""
    pass
