from siteledger.schemas.auth import (
    RegisterRequest,
    LoginRequest,
    UserResponse,
    RegisterResponse,
    LoginResponse
)
from siteledger.schemas.totals import TotalsReport, TotalsResponse, TotalsRow, TotalsSummary

__all__ = [
    "RegisterRequest",
    "LoginRequest",
    "UserResponse",
    "RegisterResponse",
    "LoginResponse",
    "TotalsReport",
    "TotalsResponse",
    "TotalsRow",
    "TotalsSummary"
]
