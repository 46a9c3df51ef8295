from datetime import date

from pydantic import BaseModel, ConfigDict


class DateRangeOut(BaseModel):
    start_date: date
    end_date: date


class ValidationIssueOut(BaseModel):
    field: str
    message: str
    type: str | None = None


class ErrorDetailOut(BaseModel):
    code: str
    message: str
    request_id: str
    path: str
    details: list[ValidationIssueOut] | None = None


class ErrorOut(BaseModel):
    error: ErrorDetailOut

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "error": {
                    "code": "invalid_range",
                    "message": "start_date cannot be after end_date",
                    "request_id": "8d8f2b00-6c79-4a45-8ff4-b0a5f2bc4bc2",
                    "path": "/reports/daily",
                    "details": None,
                }
            }
        }
    )
