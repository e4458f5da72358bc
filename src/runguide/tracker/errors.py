# errors.py
# Exceptions raised by the tracker.
# Rejected GPS samples and calls without an active run are NOT errors;
# they are reported through return values (see FilterDecision / SessionStatus).


class ConfigurationError(ValueError):
    """A threshold, radius or count that can never produce valid behaviour."""


class CourseFormatError(ValueError):
    """A course file exists but cannot be decoded into guide points."""


def require_positive(name: str, value: float) -> None:
    """Raise ConfigurationError unless value > 0. Never clamps."""
    if value is None or not value > 0:
        raise ConfigurationError(f"{name} must be > 0, got {value!r}")


def require_above_one(name: str, value: float) -> None:
    """Raise ConfigurationError unless value > 1 (multiplicative factors)."""
    if value is None or not value > 1:
        raise ConfigurationError(f"{name} must be > 1, got {value!r}")
