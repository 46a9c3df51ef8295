class HmsError(Exception):
    code = "hms_error"
    status_code = 400

    def __init__(self, message: str, *, details: list[dict] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(HmsError):
    """Malformed input rows or invoice items; rejected before anything is computed."""

    code = "validation_error"
    status_code = 422


class InvalidRangeError(HmsError):
    """A start date after its end date. Bounds are never swapped implicitly."""

    code = "invalid_range"
    status_code = 400


class RenderError(HmsError):
    code = "render_error"
    status_code = 422


class NotFoundError(HmsError):
    code = "not_found"
    status_code = 404
