"""Unit tests for the errors module."""

import time

import pytest

from rhodibot.utils.errors import (
    ConfigurationError,
    DocumentParseError,
    OrchestrationError,
    OrphanViolationError,
    PolicyError,
    RegistryError,
    RhodibotError,
    ScanCancelledError,
    ScanTimeoutError,
    SnapshotError,
    retry,
)


class TestRhodibotError:
    """Tests for base RhodibotError."""

    def test_basic_error(self):
        """Test basic error creation."""
        error = RhodibotError("Something went wrong")
        assert str(error) == "Something went wrong"
        assert error.message == "Something went wrong"
        assert error.code == "UNKNOWN_ERROR"
        assert error.details == {}

    def test_to_audit_error(self):
        """Test conversion to AuditError model."""
        error = RhodibotError("Test error", code="TEST_ERROR", details={"key": "value"})
        audit_error = error.to_audit_error()

        assert audit_error.code == "TEST_ERROR"
        assert audit_error.message == "Test error"
        assert audit_error.details == {"key": "value"}


class TestOrchestrationErrors:
    """Tests for the errors that prevent a report."""

    @pytest.mark.parametrize(
        "error,code",
        [
            (SnapshotError("unreadable", root="/srv/repo"), "REPOSITORY_UNREADABLE"),
            (PolicyError("bad pack"), "POLICY_ERROR"),
            (RegistryError("empty"), "REGISTRY_ERROR"),
            (ScanTimeoutError(timeout=5), "SCAN_TIMEOUT"),
            (ScanCancelledError(), "SCAN_CANCELLED"),
            (OrphanViolationError("X-1"), "ORPHAN_VIOLATION"),
        ],
    )
    def test_codes(self, error, code):
        """Every orchestration failure carries a stable code."""
        assert isinstance(error, OrchestrationError)
        assert error.code == code

    def test_registry_error_is_policy_error(self):
        error = RegistryError("duplicate", rule_id="RSR-REQ-001")
        assert isinstance(error, PolicyError)
        assert error.details == {"rule_id": "RSR-REQ-001"}

    def test_snapshot_details(self):
        assert SnapshotError("gone", root="/srv/repo").details == {"root": "/srv/repo"}
        assert SnapshotError("gone").details == {}

    def test_timeout_details(self):
        assert ScanTimeoutError("slow", timeout=2.5).details == {"timeout": 2.5}

    def test_parse_error_is_not_orchestration(self):
        assert not isinstance(DocumentParseError("bad"), OrchestrationError)
        assert not isinstance(ConfigurationError("bad"), OrchestrationError)


class TestDocumentParseError:
    """Tests for DocumentParseError."""

    def test_position_in_message(self):
        error = DocumentParseError("Unclosed list", line=3, column=7)
        assert str(error) == "Unclosed list (line 3, column 7)"
        assert error.line == 3
        assert error.column == 7
        assert error.details == {"line": 3, "column": 7}

    def test_without_position(self):
        error = DocumentParseError("Empty document")
        assert str(error) == "Empty document"
        assert error.line is None


class TestConfigurationError:
    """Tests for ConfigurationError."""

    def test_with_key(self):
        """Test error with config key."""
        error = ConfigurationError("Invalid value", config_key="scan.timeout")
        assert error.code == "CONFIG_ERROR"
        assert error.details["config_key"] == "scan.timeout"


class TestRetryDecorator:
    """Tests for retry decorator."""

    def test_retry_succeeds_first_time(self):
        """Test that successful function doesn't retry."""
        call_count = 0

        @retry(max_attempts=3, delay=0.01)
        def successful_func():
            nonlocal call_count
            call_count += 1
            return "success"

        assert successful_func() == "success"
        assert call_count == 1

    def test_retry_on_failure(self):
        """Test retry on failure."""
        call_count = 0

        @retry(max_attempts=3, delay=0.01, exceptions=(SnapshotError,))
        def flaky_clone():
            nonlocal call_count
            call_count += 1
            if call_count < 3:
                raise SnapshotError("Not yet")
            return "snapshot"

        assert flaky_clone() == "snapshot"
        assert call_count == 3

    def test_retry_exhausted(self):
        """Test that the last exception is raised after max attempts."""
        call_count = 0

        @retry(max_attempts=3, delay=0.01)
        def always_fails():
            nonlocal call_count
            call_count += 1
            raise ValueError("Always fails")

        with pytest.raises(ValueError, match="Always fails"):
            always_fails()

        assert call_count == 3

    def test_retry_if_rejects(self):
        """Errors the predicate rejects propagate without another attempt."""
        call_count = 0

        @retry(max_attempts=3, delay=10, exceptions=(SnapshotError,), retry_if=lambda e: e.retryable)
        def missing_root():
            nonlocal call_count
            call_count += 1
            raise SnapshotError("no such directory", retryable=False)

        with pytest.raises(SnapshotError, match="no such directory"):
            missing_root()

        assert call_count == 1

    def test_retry_specific_exceptions(self):
        """Policy errors are never retried."""
        call_count = 0

        @retry(max_attempts=3, delay=0.01, exceptions=(SnapshotError,))
        def bad_policy():
            nonlocal call_count
            call_count += 1
            raise PolicyError("malformed")

        with pytest.raises(PolicyError):
            bad_policy()

        assert call_count == 1

    def test_retry_backoff(self):
        """Test exponential backoff."""
        call_count = 0
        timestamps = []

        @retry(max_attempts=3, delay=0.05, backoff=2.0)
        def fails_twice():
            nonlocal call_count
            call_count += 1
            timestamps.append(time.monotonic())
            if call_count < 3:
                raise ValueError("Not yet")
            return "success"

        assert fails_twice() == "success"
        assert timestamps[2] - timestamps[1] >= timestamps[1] - timestamps[0]

    def test_invalid_attempts(self):
        with pytest.raises(ValueError):
            retry(max_attempts=0)
