from fastapi import Request
from fastapi.responses import JSONResponse


class CareRouteError(Exception):
    """Base exception for all CareRoute errors."""
    status_code: int = 500
    error_code: str = "internal_error"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ConfigurationError(CareRouteError):
    status_code = 500
    error_code = "configuration_error"


class AdapterNotFoundError(ConfigurationError):
    error_code = "adapter_not_found"

    def __init__(self, provider: str):
        self.provider = provider
        super().__init__(f"No adapter found for provider: {provider}")


class BudgetExceededError(CareRouteError):
    status_code = 429
    error_code = "budget_exceeded"

    def __init__(self, scope: str, current: float, limit: float):
        self.scope = scope
        self.current = current
        self.limit = limit
        super().__init__(
            f"{scope.capitalize()} cost limit exceeded: ${current:.4f} >= ${limit:.4f}"
        )


class ProviderError(CareRouteError):
    status_code = 502
    error_code = "provider_error"

    def __init__(self, message: str, provider: str, original_status: int = 0):
        self.provider = provider
        self.original_status = original_status
        super().__init__(message)


class FallbackExhaustedError(CareRouteError):
    status_code = 502
    error_code = "fallback_exhausted"

    def __init__(self, last_error: Exception, attempts: int):
        self.last_error = last_error
        self.attempts = attempts
        super().__init__(f"All fallback candidates failed. Last error: {last_error}")


async def careroute_exception_handler(
    request: Request, exc: CareRouteError
) -> JSONResponse:
    content = {
        "error": {
            "code": exc.error_code,
            "message": exc.message,
            "type": type(exc).__name__,
        }
    }
    if isinstance(exc, BudgetExceededError):
        content["error"]["scope"] = exc.scope
        content["error"]["current"] = exc.current
        content["error"]["limit"] = exc.limit
    return JSONResponse(status_code=exc.status_code, content=content)
