from fastapi import Request
from fastapi.responses import JSONResponse


class StudioError(Exception):
    """Base for errors surfaced verbatim to the API caller."""

    status_code = 500
    code = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def payload(self) -> dict:
        return {"detail": self.message, "code": self.code}


class ConfigurationMissing(StudioError):
    status_code = 503
    code = "configuration_missing"

    def __init__(self, missing: list[str]):
        self.missing = list(missing)
        super().__init__(
            "Configuration Required: backend connection is not configured. "
            f"Please set {' and '.join(self.missing)} in your environment variables."
        )

    def payload(self) -> dict:
        return {**super().payload(), "missing": self.missing}


class NotAuthenticated(StudioError):
    status_code = 401
    code = "not_authenticated"

    def __init__(self, message: str = "Please login to generate content"):
        super().__init__(message)


class PermissionDenied(StudioError):
    status_code = 403
    code = "permission_denied"


class PlanInactive(StudioError):
    status_code = 403
    code = "plan_inactive"

    def __init__(self, message: str = "Your plan is inactive. Please activate your plan first."):
        super().__init__(message)


class InsufficientCredits(StudioError):
    status_code = 402
    code = "insufficient_credits"

    def __init__(self, needed: int, available: int):
        self.needed = needed
        self.available = available
        super().__init__(
            f"Insufficient credits. You need {needed} credits, "
            f"but have {available}. Upgrade your plan!"
        )

    def payload(self) -> dict:
        return {**super().payload(), "needed": self.needed, "available": self.available}


class UpstreamError(StudioError):
    status_code = 502
    code = "upstream_error"


class PersistenceError(StudioError):
    status_code = 500
    code = "persistence_error"


class NotFound(StudioError):
    status_code = 404
    code = "not_found"


class InvalidRequest(StudioError):
    status_code = 400
    code = "invalid_request"


def studio_error_handler(request: Request, exc: StudioError):
    return JSONResponse(status_code=exc.status_code, content=exc.payload())
