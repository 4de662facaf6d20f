from pydantic import BaseModel

# Numeric(18, 6) holds at most 12 integer digits
MAX_AMOUNT_USDC = 1_000_000_000_000


class ErrorResponse(BaseModel):
    detail: str


class FieldError(BaseModel):
    field: str
    message: str


class ValidationErrorResponse(BaseModel):
    detail: str
    errors: list[FieldError]


class HealthResponse(BaseModel):
    status: str
    version: str
    timestamp: str
