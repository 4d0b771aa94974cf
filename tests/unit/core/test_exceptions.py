"""Unit tests for the application exception hierarchy."""

from common.core.exceptions import (
    ClusterError,
    ClusterUnavailableError,
    CreationFailedError,
    JobNotFoundError,
    ValidationError,
)


class TestExceptions:
    def test_status_codes(self):
        assert ValidationError("bad").status_code == 400
        assert JobNotFoundError("gone").status_code == 404
        assert ClusterError("boom").status_code == 500
        assert ClusterUnavailableError("not wired").status_code == 503

    def test_cluster_error_without_api_status(self):
        assert ClusterError("connection refused").api_status is None

    def test_creation_failed_without_cause(self):
        error = CreationFailedError("Failed to create job")

        assert error.cause is None
        assert error.api_status is None
        assert error.attempts == 0

    def test_creation_failed_takes_status_from_cause(self):
        error = CreationFailedError(
            "Failed to create job", cause=ClusterError("conflict", api_status=409), attempts=4
        )

        assert error.api_status == 409
        assert error.attempts == 4
