from __future__ import annotations

from enum import Enum


class FlowStage(str, Enum):
    """Callback stages, in order. A failure at any stage ends the attempt."""

    START = "start"
    STATE_VERIFIED = "state_verified"
    TOKEN_EXCHANGED = "token_exchanged"
    IDENTITY_RESOLVED = "identity_resolved"
    AUTHORIZED = "authorized"
    SESSION_ISSUED = "session_issued"


class LoginError(RuntimeError):
    title = "Login failed"
    # Stage that was being entered when the error was raised.
    stage = FlowStage.START

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class StateInvalid(LoginError):
    stage = FlowStage.STATE_VERIFIED

    def __init__(self, message: str = "Invalid login attempt, please sign in again"):
        super().__init__(message)


class ExchangeFailed(LoginError):
    stage = FlowStage.TOKEN_EXCHANGED

    def __init__(self, message: str = "Authorization code exchange failed"):
        super().__init__(message)


class IdentityFetchFailed(LoginError):
    stage = FlowStage.IDENTITY_RESOLVED

    def __init__(self, message: str = "Failed to fetch user info"):
        super().__init__(message)


class NotAdministrator(LoginError):
    stage = FlowStage.AUTHORIZED

    def __init__(self, message: str = "This user is not an administrator of this site"):
        super().__init__(message)


class TokenGenerationFailed(LoginError):
    title = "Something wrong"
    stage = FlowStage.SESSION_ISSUED

    def __init__(self, message: str = "Failed to generate a session token"):
        super().__init__(message)


class StateGenerationFailed(LoginError):
    title = "Something wrong"

    def __init__(self, message: str = "Failed to start the login, please try again"):
        super().__init__(message)


class SessionPersistFailed(LoginError):
    title = "Something wrong"
    stage = FlowStage.SESSION_ISSUED

    def __init__(self, message: str = "Failed to save the login session, please try again"):
        super().__init__(message)
