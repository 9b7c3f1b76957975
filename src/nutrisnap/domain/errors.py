"""Error types raised across the application."""


class NutriSnapError(Exception):
    """Base class for application errors."""


class DecodeError(NutriSnapError):
    """Persisted entries could not be decoded."""


class GatewayError(NutriSnapError):
    """The food analysis call failed."""


class PersistenceError(NutriSnapError):
    """Reading or writing durable storage failed."""


class SessionStateError(NutriSnapError):
    """A session action was requested in the wrong state."""


class ConcurrentAnalysisError(SessionStateError):
    """A capture was requested while another analysis is in flight."""


class DuplicateEntryError(NutriSnapError):
    """An entry with the same id already exists in the store."""
