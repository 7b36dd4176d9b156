"""
Exception types raised by the Bazi engine.
"""


class BaziError(Exception):
    """Base class for all Bazi engine errors."""
    pass


class InvalidInputError(BaziError, ValueError):
    """Birth date or time is missing, malformed, or not a real calendar date."""
    pass


class UnsupportedDateError(BaziError):
    """The lunar calendar cannot convert the given (well-formed) date."""
    pass


class BaziLookupError(BaziError, LookupError):
    """A stem or branch symbol is not in the sexagenary tables."""
    pass


class AdvisorError(Exception):
    """The hosted model call behind an advisor request failed."""
    pass
