# src/grade_watcher/exceptions.py

"""Custom exception classes for the grade watcher application."""

from typing import Optional


class GradeWatcherBaseError(Exception):
    """Base class for application-specific errors."""
    def __init__(self, message="An application error occurred."):
        self.message = message
        super().__init__(self.message)

# --- Configuration Errors ---
class ConfigError(GradeWatcherBaseError):
    """Error for a missing or invalid configuration setting."""
    def __init__(self, message="Invalid configuration."):
        super().__init__(message)

# --- Grade Pipeline Errors ---
class LoginFailedError(GradeWatcherBaseError):
    """Error when the SSO login did not land on the expected post-login page."""
    def __init__(self, final_url: Optional[str] = None, message="Jiaowu login failed"):
        super().__init__(message)
        self.final_url = final_url

class GradeMalformedError(GradeWatcherBaseError):
    """Error when grade payloads parsed as JSON but did not have the expected structure."""
    def __init__(self, message="Grade is malformed"):
        super().__init__(message)

class TransportError(GradeWatcherBaseError):
    """Error related to talking to the upstream service (network, HTTP status, undecodable body)."""
    def __init__(self, message="Failed to retrieve data from the upstream service.", original_exception: Optional[Exception] = None):
        super().__init__(message)
        self.original_exception = original_exception

# --- Notification Errors ---
class NotificationSystemError(GradeWatcherBaseError):
    """Error related to composing or sending a notification email."""
    def __init__(self, message="Notification system error.", original_exception: Optional[Exception] = None):
        super().__init__(message)
        self.original_exception = original_exception
