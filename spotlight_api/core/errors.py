"""
spotlight_api/core/errors.py
Failures raised by the rotation core and its collaborators.
None of them are fatal: each one is resolved by the next tick or manual refresh.
"""


class RotationError(Exception):
    """Base class. ``status`` is the HTTP code the routers answer with."""

    status = 500


class NotReadyError(RotationError):
    """No refresh has ever succeeded for this feature."""

    status = 503


class NotFoundError(RotationError):
    """The pool has no eligible row (or no row with the requested id)."""

    status = 404


class QueryError(RotationError):
    status = 502


class AssemblyError(QueryError):
    """A candidate row came back without a complete nested tree."""


class GenerationError(RotationError):
    status = 502
