"""
Failure taxonomy for the planner.
Every failure is scoped to the request or item it affects.
"""


class PlannerError(Exception):
    """Base class for planner failures."""


class ParseFailure(PlannerError):
    """A row or file could not be interpreted."""


class ClassificationFailure(PlannerError):
    """The external classification call failed or returned unusable data."""


class NotFoundFailure(PlannerError):
    """No active schedule exists for the user."""


class InvalidProblemIndex(NotFoundFailure):
    """The (day, problem) address does not exist in the active schedule."""


class PersistenceFailure(PlannerError):
    """The schedule store rejected a read or write."""
