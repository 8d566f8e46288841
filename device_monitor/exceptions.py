class DashboardError(Exception):
    """Base error carrying the HTTP status used for the response envelope."""

    status_code = 500

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(DashboardError):
    """Bad method, malformed body or missing required field. Nothing is mutated."""

    status_code = 400


class PersistenceError(DashboardError):
    """The backing JSON document could not be written."""

    status_code = 500
