"""Exceptions raised by the Natours persistence and schema layers."""


class NatoursError(Exception):
    """Base class for Natours errors."""

    status_code = 500


class TourNotFoundError(NatoursError):
    """Raised when a lookup by identifier matches no visible tour."""

    status_code = 404

    def __init__(self, tour_id=None, message=None):
        self.tour_id = tour_id
        super().__init__(message or "No tour found with that ID")


class TourValidationError(NatoursError, ValueError):
    """Raised when a tour, an identifier or a filter value is invalid."""

    status_code = 400
