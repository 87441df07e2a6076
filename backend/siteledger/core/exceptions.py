from fastapi import HTTPException, status


class SiteLedgerError(HTTPException):
    """Base for errors surfaced to API callers. `error` is a stable machine code."""

    error = "error"

    def __init__(self, status_code: int, detail: str):
        super().__init__(status_code=status_code, detail=detail)


class AuthenticationRequired(SiteLedgerError):
    error = "authentication_required"

    def __init__(self, message: str = "Access denied. No token provided."):
        super().__init__(status.HTTP_401_UNAUTHORIZED, message)


class InvalidToken(SiteLedgerError):
    error = "invalid_token"

    def __init__(self, message: str = "Invalid token. Please login again."):
        super().__init__(status.HTTP_401_UNAUTHORIZED, message)


class InvalidCredentials(SiteLedgerError):
    error = "invalid_credentials"

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(status.HTTP_400_BAD_REQUEST, message)


class SiteAccessDenied(SiteLedgerError):
    error = "site_access_denied"

    def __init__(self, message: str = "Site access not configured for this user."):
        super().__init__(status.HTTP_403_FORBIDDEN, message)


class AuthorizationDenied(SiteLedgerError):
    error = "authorization_denied"

    def __init__(self, message: str = "You do not have permission to perform this action."):
        super().__init__(status.HTTP_403_FORBIDDEN, message)


class DuplicateMaterial(SiteLedgerError):
    error = "duplicate_material"

    def __init__(self, material_name: str):
        self.material_name = material_name
        super().__init__(
            status.HTTP_400_BAD_REQUEST,
            f"Material '{material_name}' already exists in this site."
        )


class DuplicateUsername(SiteLedgerError):
    error = "duplicate_username"

    def __init__(self, username: str):
        self.username = username
        super().__init__(status.HTTP_400_BAD_REQUEST, f"Username '{username}' already exists")


class MaterialNotFound(SiteLedgerError):
    error = "material_not_found"

    def __init__(self, material_name: str):
        self.material_name = material_name
        super().__init__(
            status.HTTP_400_BAD_REQUEST,
            f"Material '{material_name}' not found in site database"
        )


class RecordNotFound(SiteLedgerError):
    error = "record_not_found"

    def __init__(self, resource: str, record_id):
        self.resource = resource
        self.record_id = record_id
        super().__init__(status.HTTP_404_NOT_FOUND, f"{resource} {record_id} not found")


class StorageUnavailable(SiteLedgerError):
    error = "storage_unavailable"

    def __init__(self, message: str = "Database connection error. Please try again."):
        super().__init__(status.HTTP_500_INTERNAL_SERVER_ERROR, message)


class InvalidRequest(SiteLedgerError):
    error = "invalid_request"

    def __init__(self, message: str = "Invalid input"):
        super().__init__(status.HTTP_400_BAD_REQUEST, message)
