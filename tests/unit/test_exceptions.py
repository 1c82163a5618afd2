"""Unit tests for the error taxonomy."""

import pytest

from custos.core.exceptions import (
    AppError,
    AuditMetadataError,
    ConflictError,
    ContextNotSetError,
    ForbiddenError,
    InvalidTenantError,
    NotFoundError,
    PurgeRequestNotReadyError,
    UnauthorizedError,
    UserNotSoftDeletedError,
    ValidationError,
    is_app_error,
)
from custos.utils.exceptions import CustosError


class TestAppError:
    def test_defaults(self):
        error = AppError()

        assert error.message == "Application error"
        assert error.code == "APP_ERROR"
        assert error.status == 400

    def test_custom_values(self):
        error = AppError("Boom", code="BOOM", status=500)

        assert str(error) == "AppError(BOOM): Boom"
        assert error.to_dict() == {"error": "BOOM", "message": "Boom", "status": 500}

    @pytest.mark.parametrize(
        ("error_cls", "code", "status", "message"),
        [
            (UnauthorizedError, "UNAUTHORIZED", 401, "Unauthorized"),
            (ForbiddenError, "FORBIDDEN", 403, "Insufficient permissions"),
            (InvalidTenantError, "INVALID_TENANT", 400, "tenantId required"),
            (ConflictError, "CONFLICT", 409, "Conflict"),
            (ValidationError, "VALIDATION_ERROR", 400, "Validation failed"),
            (NotFoundError, "NOT_FOUND", 404, "Not found"),
        ],
    )
    def test_subclass_codes(self, error_cls, code, status, message):
        error = error_cls()

        assert error.code == code
        assert error.status == status
        assert error.message == message
        assert isinstance(error, AppError)
        assert isinstance(error, CustosError)

    def test_domain_errors_inherit_codes(self):
        assert PurgeRequestNotReadyError().status == 404
        assert UserNotSoftDeletedError().status == 409
        assert AuditMetadataError().code == "VALIDATION_ERROR"

    def test_is_app_error(self):
        assert is_app_error(ForbiddenError())
        assert not is_app_error(ContextNotSetError())
        assert not is_app_error(ValueError("x"))
