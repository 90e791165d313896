"""
Exceptions raised by the hierarchy calculator.

InvalidSpectrum aborts a whole evaluation. NumericalSingularity is
contained by the selector, which drops the offending hierarchy and
keeps scanning. UnsupportedHierarchy signals a programming error.
"""


class HierarchyError(Exception):
    """Base class for all hierarchy calculator errors."""


class InvalidSpectrum(HierarchyError, ValueError):
    """Non-physical input, or a spectrum no hierarchy is suitable for."""


class UnsupportedHierarchy(HierarchyError, KeyError):
    """Unknown hierarchy tag, or no expansion registered for it."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the message readable
        return str(self.args[0]) if self.args else ""


class NumericalSingularity(HierarchyError, ArithmeticError):
    """The exact two-loop oracle stayed non-finite after the retry."""
