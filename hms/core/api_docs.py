from hms.schemas.common import ErrorOut


_ERROR_EXAMPLES: dict[int, tuple[str, str]] = {
    400: ("invalid_range", "start_date cannot be after end_date"),
    404: ("not_found", "Resource not found"),
    422: ("validation_error", "Validation failed"),
    500: ("internal_error", "Internal server error"),
}


def error_responses(*status_codes: int) -> dict[int, dict]:
    responses: dict[int, dict] = {}
    for status_code in status_codes:
        code, message = _ERROR_EXAMPLES.get(status_code, ("http_error", "HTTP error"))
        responses[status_code] = {
            "model": ErrorOut,
            "description": message,
            "content": {
                "application/json": {
                    "example": {
                        "error": {
                            "code": code,
                            "message": message,
                            "request_id": "request-id",
                            "path": "/reports/daily",
                            "details": None,
                        }
                    }
                }
            },
        }
    return responses
