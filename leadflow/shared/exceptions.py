# leadflow/shared/exceptions.py
from fastapi import HTTPException, status


# Authentication & Authorization Exceptions
class InvalidTokenError(HTTPException):
    def __init__(self, message: str = "Missing or invalid token") -> None:
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, detail=message)


class NotAuthorizedError(HTTPException):
    def __init__(self, message: str = "Not authorized") -> None:
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=message)


# Resource Not Found Exceptions
class RoleNotFoundError(HTTPException):
    def __init__(self) -> None:
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail="Role not found")


# Validation / Precondition Exceptions
class InvalidDataError(HTTPException):
    def __init__(self, message: str = "Invalid request data") -> None:
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=message)


class NoOrganizationForRoleError(InvalidDataError):
    def __init__(self, role_id: str) -> None:
        self.role_id = role_id
        super().__init__(f"Role {role_id} does not belong to an organization")


class NoActiveOrganizationError(InvalidDataError):
    def __init__(self) -> None:
        super().__init__("No active organization")


# Remote Store Exceptions
class RemoteOperationError(HTTPException):
    def __init__(self, message: str = "Remote operation failed") -> None:
        super().__init__(status_code=status.HTTP_502_BAD_GATEWAY, detail=message)
