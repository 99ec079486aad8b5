"""Exceptions raised by revsync."""


class RevsyncError(Exception):
    """Base class for all revsync errors."""


class StoreError(RevsyncError):
    """A change store or entity accessor failed to read or write."""


class UnknownModelError(StoreError):
    """No entity accessor is registered for a model name."""

    def __init__(self, model_name: str):
        super().__init__(f"No accessor registered for model '{model_name}'")
        self.model_name = model_name


class InvalidChangeError(RevsyncError, ValueError):
    """A change record supplied by a caller is malformed."""


class SerializationError(RevsyncError, TypeError):
    """An entity could not be canonically serialized."""


class ConfigError(RevsyncError, ValueError):
    """Configuration value is invalid."""
