"""
Error codes and exception types for the isolation harness.

Three kinds of failure are kept apart: expected absence (a document source
that does not exist yet), infrastructure faults (broker, database, document
store, hung drains) and assertion failures (a non-empty structural diff).
"""
from enum import Enum
from typing import Any, Optional


class ErrorCode(Enum):
    """Standardized error codes"""

    # Expected absence (1000-1999)
    DATA_SOURCE_NOT_FOUND = "ABSENT_1001"

    # Infrastructure faults (2000-2999)
    BROKER_TIMEOUT = "INFRA_2001"
    BROKER_PROTOCOL = "INFRA_2002"
    BROKER_NOT_CONNECTED = "INFRA_2003"
    DRAIN_TIMEOUT = "INFRA_2004"
    CONSUMER_FAILED = "INFRA_2005"
    DOCUMENT_STORE_UNAVAILABLE = "INFRA_2006"
    FEED_STORE_FAILED = "INFRA_2007"
    DATABASE_NOT_CONNECTED = "INFRA_2008"

    # Assertion failures (3000-3999)
    STRUCTURAL_MISMATCH = "ASSERT_3001"

    @property
    def is_infrastructure(self) -> bool:
        return self.value.startswith("INFRA_")

    @property
    def is_expected_absence(self) -> bool:
        return self.value.startswith("ABSENT_")


class HarnessError(Exception):
    """Base exception with error code"""

    def __init__(self, error_code: ErrorCode, message: str, details: Optional[dict] = None):
        self.error_code = error_code
        self.message = message
        self.details = details or {}
        super().__init__(f"{error_code.value}: {message}")

    def to_dict(self) -> dict:
        """Convert to dictionary for logging"""
        return {
            "error_code": self.error_code.value,
            "message": self.message,
            "details": self.details,
            "infrastructure": self.error_code.is_infrastructure,
            "expected_absence": self.error_code.is_expected_absence,
        }


class DataSourceNotFound(HarnessError):
    """Document source does not exist"""

    def __init__(self, name: str):
        super().__init__(ErrorCode.DATA_SOURCE_NOT_FOUND, f"Data source {name} does not exist", {"name": name})


class InfrastructureFault(HarnessError):
    """Setup/teardown fault that invalidates the current test"""
    pass


class BrokerError(InfrastructureFault):
    pass


class BrokerTimeoutError(BrokerError):
    pass


class BrokerProtocolError(BrokerError):
    pass


class DrainTimeoutError(InfrastructureFault):
    pass


class ConsumerError(InfrastructureFault):
    pass


class DocumentStoreError(InfrastructureFault):
    pass


class FeedStoreError(InfrastructureFault):
    pass


class StructuralMismatch(AssertionError):
    """Pipeline output differs from the expected value"""

    def __init__(self, message: str, diff: Any, actual: Any):
        self.diff = diff
        self.actual = actual
        super().__init__(message)
