"""Security-layer exceptions. Typed, no HTTP."""

from typing import Optional


class SecurityError(Exception):
    """Base for all security-layer errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class AuthenticationRequiredError(SecurityError):
    """Raised when no authenticated actor is attached to the request."""

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message)


class AuthorizationError(SecurityError):
    """
    Raised when the actor's role lacks a permission, role, access level or ownership.
    Carries what was required and what the actor had, for diagnostics.
    """

    def __init__(
        self,
        message: str,
        *,
        required: Optional[str] = None,
        current: Optional[str] = None,
        user_role: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.required = required
        self.current = current
        self.user_role = user_role

    def to_dict(self) -> dict:
        payload = {"detail": self.message}
        if self.required is not None:
            payload["required"] = self.required
        if self.current is not None:
            payload["current"] = self.current
        if self.user_role is not None:
            payload["user_role"] = self.user_role
        return payload
