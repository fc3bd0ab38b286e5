"""
TapMock Errors

Every failure that can happen while answering a mocked request is turned into
an error response at the request boundary. The classes here carry whatever
context that response needs.
"""

from typing import Any, List, Optional


class MockServerError(Exception):
    """Base class for all TapMock errors."""

    def __init__(
        self,
        message: str,
        *,
        request: Optional[Any] = None,
        result: Optional[Any] = None
    ):
        self.message = message
        self.request = request
        self.result = result
        super().__init__(message)

    @property
    def type(self) -> str:
        """Error type name reported in error bodies."""
        return type(self).__name__


class ParseError(MockServerError):
    """Request body claimed to be JSON but could not be parsed."""


class ValidationError(MockServerError):
    """
    A handler returned something that is not a valid result.

    Carries every rule the result violated, plus the request and the
    offending result so the error body can echo them back.
    """

    def __init__(
        self,
        reasons: List[str],
        *,
        request: Optional[Any] = None,
        result: Optional[Any] = None
    ):
        self.reasons = list(reasons)
        explanation = ', '.join(self.reasons) or 'Something went wrong while validating'
        super().__init__(
            f"Invalid result for request, {explanation}",
            request=request,
            result=result
        )


class ConfigurationError(MockServerError):
    """Registration data or a seed file is malformed."""
