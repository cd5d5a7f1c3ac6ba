"""
Result Pattern Implementation
Services return a Result instead of raising for expected outcomes
(property not found, partner lookup failed), so callers branch on
`is_success` and read `error_code` for the reason.
"""

from typing import TypeVar, Generic, Optional, Any, Dict
from dataclasses import dataclass

T = TypeVar('T')


@dataclass
class Result(Generic[T]):
    """
    A generic Result class for service method returns.

    Examples:
        result = Result.success(outcome)
        if result.is_success:
            print(result.data.status)

        result = Result.failure("Property not found", code="PROPERTY_NOT_FOUND")
        if result.is_failure:
            print(result.error_code)
    """

    success: bool
    data: Optional[T] = None
    error: Optional[str] = None
    error_code: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None

    @classmethod
    def success(cls, data: T, metadata: Optional[Dict[str, Any]] = None) -> 'Result[T]':
        """
        Create a successful result.

        Args:
            data: The successful result data
            metadata: Optional metadata about the operation
        """
        return cls(success=True, data=data, metadata=metadata)

    @classmethod
    def failure(cls,
                error: str,
                code: Optional[str] = None,
                data: Optional[T] = None,
                metadata: Optional[Dict[str, Any]] = None) -> 'Result[T]':
        """
        Create a failure result.

        Failures may still carry data, e.g. the pipeline outcome with its
        terminal state, so the caller can report it.
        """
        return cls(success=False, data=data, error=error, error_code=code, metadata=metadata)

    @property
    def is_success(self) -> bool:
        return self.success

    @property
    def is_failure(self) -> bool:
        return not self.success

    def unwrap(self) -> T:
        """
        Get the data from a successful result.

        Raises:
            ValueError: If called on a failure result
        """
        if self.is_failure:
            raise ValueError(f"Cannot unwrap a failure result: {self.error}")
        return self.data

    def unwrap_or(self, default: T) -> T:
        return self.data if self.is_success else default

    def __bool__(self) -> bool:
        return self.is_success

    def __repr__(self) -> str:
        if self.is_success:
            return f"Result.success(data={self.data!r})"
        return f"Result.failure(error={self.error!r}, code={self.error_code!r})"
