"""Exception types raised while translating extension locale files."""


class TranslationError(Exception):
    """Base class for all errors raised by this package."""


class ConfigurationError(TranslationError):
    """Missing or invalid input configuration or credentials. Fatal for the run."""


class ClientNotInitializedError(TranslationError):
    """A translation was requested from a client that has no backend configured."""


class RemoteServiceError(TranslationError):
    """The remote translation service failed or returned an unusable result."""
