"""Errors raised while talking to the hosted try-on model"""
from typing import Optional


class TryOnError(Exception):
    """Base class for every try-on adapter failure"""


class ConfigurationError(TryOnError):
    """A required setting (the Hugging Face token) is missing"""


class SpaceConnectionError(TryOnError):
    """Neither a direct connection nor a duplicated Space could be reached"""


class FetchError(TryOnError):
    """A source or result image could not be retrieved"""


class FormatError(TryOnError):
    """The remote model returned an output we do not know how to read"""


class RemoteInferenceError(TryOnError):
    """The remote /tryon call reported a failure"""

    def __init__(self, message: str, status_code: Optional[int] = None, body: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body
