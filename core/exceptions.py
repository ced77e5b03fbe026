# Statecheck v1.0.0
"""
Exceptions raised by the Statecheck comparator and its collaborators.

Per-field drift is never raised; it is reported through ComparisonResult.
"""


class StatecheckError(Exception):
    """Base class for all Statecheck errors."""


class InputTypeError(StatecheckError, TypeError):
    """Declared configuration is not one of the supported shapes."""

    def __init__(self, received, message: str = None):
        self.received = received
        super().__init__(message or (
            f"Declared configuration must be an OrderedMapConfig, "
            f"FilteredParameterConfig or PropertyBagConfig, got {type(received).__name__}"
        ))


class AmbiguousFilterError(StatecheckError, ValueError):
    """A property bag was compared without naming the keys to check."""

    def __init__(self):
        super().__init__(
            "A property bag has no enumerable key list; keys_to_check must name the fields to compare"
        )


class NotFoundError(StatecheckError, LookupError):
    """A directory or registry lookup found no matching object."""
