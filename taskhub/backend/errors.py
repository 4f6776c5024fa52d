"""Errors raised by the backend collaborator"""


class BackendError(Exception):
    """
    A backend call failed.

    Pages show ``message`` verbatim; no further classification is made.
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AuthenticationError(BackendError):
    """Sign-in was refused"""


class RateLimitError(AuthenticationError):
    """Too many failed sign-in attempts from one client"""
