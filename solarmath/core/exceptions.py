"""
Custom exceptions for the solarmath core system.

Every error raised by an operation derives from SolarMathError and from the
builtin it refines, so callers may catch either.
"""


class SolarMathError(Exception):
    """Base class for all solarmath custom exceptions."""
    pass


class InvalidArgumentsError(SolarMathError, ValueError):
    """Raised on wrong arity, out-of-range numbers or invalid argument combinations."""
    pass


class UnsupportedImageKindError(SolarMathError, TypeError):
    """Raised when an operation receives an image variant it cannot process."""
    pass


class TypeMismatchError(SolarMathError, TypeError):
    """Raised when operands that must share an image kind do not."""
    pass


class DimensionMismatchError(SolarMathError, ValueError):
    """Raised when operands that must share a dimension do not."""
    pass


class MissingPrerequisiteError(SolarMathError, LookupError):
    """Raised when required metadata (typically an ellipse) is absent and not supplied."""
    pass


class UnknownProfileError(SolarMathError, KeyError):
    """Raised when a named spectral-ray / color profile has no match."""

    def __str__(self):
        # KeyError quotes its argument; keep the message readable
        return str(self.args[0]) if self.args else ""


class UnknownFunctionError(SolarMathError, KeyError):
    """Raised when an operation name is not in the catalog."""

    def __str__(self):
        return str(self.args[0]) if self.args else ""


class RegressionError(SolarMathError, ArithmeticError):
    """Raised when ellipse regression cannot find a solution."""
    pass


class ImmutabilityError(SolarMathError, AttributeError):
    """Raised when an attempt is made to modify a frozen object."""
    pass


class MetadataMergeWarning(UserWarning):
    """Warning issued when a metadata category is dropped while merging."""
    pass
