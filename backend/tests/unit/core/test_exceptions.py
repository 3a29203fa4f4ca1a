"""
Unit Tests for the error taxonomy
"""
from complyva.core.exceptions import (
    ComplyvaError,
    NotFoundError,
    InvalidInputError,
    AlreadyLinkedError,
    UnauthorizedError,
    UnavailableError,
    error_response,
)


class TestErrorKinds:
    """Each error kind carries its code and HTTP status"""

    def test_not_found(self):
        error = NotFoundError("RISK", "abc")

        assert error.status_code == 404
        assert error.code == "NOT_FOUND"
        assert error.details == {"resource_type": "RISK", "resource_id": "abc"}
        assert "abc" in error.message

    def test_invalid_input_names_field(self):
        error = InvalidInputError("likelihood out of range", field="likelihood")

        assert error.status_code == 400
        assert error.details == {"field": "likelihood"}

    def test_invalid_input_without_field(self):
        assert InvalidInputError("No fields to update").details == {}

    def test_already_linked_carries_existing_target(self):
        error = AlreadyLinkedError("INCIDENT", "i-1", "RISK", "r-1")

        assert error.status_code == 409
        assert error.code == "ALREADY_LINKED"
        assert error.details["target_id"] == "r-1"

    def test_unauthorized(self):
        error = UnauthorizedError(role="VIEWER")

        assert error.status_code == 403
        assert error.details == {"role": "VIEWER"}

    def test_unavailable_is_retryable(self):
        error = UnavailableError(operation="create")

        assert error.status_code == 503
        assert error.details["retryable"] is True
        assert error.details["operation"] == "create"

    def test_all_are_complyva_errors(self):
        for error in (
            NotFoundError("RISK", "x"),
            InvalidInputError("bad"),
            AlreadyLinkedError("NC", "a", "CAPA", "b"),
            UnauthorizedError(),
            UnavailableError(),
        ):
            assert isinstance(error, ComplyvaError)


class TestErrorResponse:
    def test_error_response_shape(self):
        body = error_response(NotFoundError("AUDIT", "a-1"))

        assert body["success"] is False
        assert body["error"]["code"] == "NOT_FOUND"
        assert body["error"]["details"]["resource_id"] == "a-1"
