"""Error types raised by the intelligence provider layer."""


class ProviderUnavailableError(RuntimeError):
    """Raised when the intelligence provider cannot produce a usable answer."""


class ProviderTimeoutError(ProviderUnavailableError):
    """Raised when a provider call does not finish within its time budget."""
