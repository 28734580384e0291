"""Exceptions raised by the survey comparison pipeline.

Cleaning irregularities (incomplete rows, sites surveyed by one method only)
are filtered and logged. Everything below MissingDataError signals a
structural problem and is always propagated to the caller.
"""


class SurveyDataError(Exception):
    """Base class for all pipeline errors."""


class MissingDataError(SurveyDataError):
    """Required cells are null (raised only when cleaning in strict mode)."""

    def __init__(self, message, n_rows=0):
        super().__init__(message)
        self.n_rows = n_rows


class SchemaError(SurveyDataError):
    """The species column mapping does not match the survey table."""


class JoinError(SurveyDataError):
    """Species ids that cannot be joined to exactly one usable trait record."""

    def __init__(self, message, missing=()):
        super().__init__(message)
        self.missing = list(missing)


class InsufficientDataError(SurveyDataError):
    """Too few rows or values to compute the requested statistic."""


class ConvergenceError(SurveyDataError):
    """A mixed-effects fit failed to converge."""

    def __init__(self, message, formula=None, warnings=()):
        super().__init__(message)
        self.formula = formula
        self.warnings = list(warnings)

    def __str__(self):
        text = super().__str__()
        if self.formula:
            text += f" [formula: {self.formula}]"
        if self.warnings:
            text += " [solver warnings: " + "; ".join(self.warnings) + "]"
        return text
