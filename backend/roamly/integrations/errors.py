class IntegrationError(RuntimeError):
    """Raised when an internal integration is misconfigured or unavailable."""


class UpstreamAPIError(RuntimeError):
    """Raised when an upstream provider call fails unexpectedly."""


class PlannerAPIError(UpstreamAPIError):
    """Upstream or planning failure carrying the HTTP status the boundary should return.

    ``message`` is short and safe to show to the traveler; diagnostic detail is
    logged where the error is raised and never attached here.
    """

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message

    def __repr__(self) -> str:
        return f"PlannerAPIError(status_code={self.status_code}, message={self.message!r})"


RATE_LIMITED_MESSAGE = "Rate limit exceeded. Please try again in a moment."
CREDITS_EXHAUSTED_MESSAGE = "AI credits exhausted. Please add credits to continue."
