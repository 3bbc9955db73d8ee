"""
Domain errors.

Only ValidationError is allowed to leave the advice engine; the others are
absorbed at the collaborator boundary or raised at startup.
"""

from typing import Optional


class AdviceError(Exception):
    """Base class for advice engine errors"""


class ValidationError(AdviceError):
    """Invalid advice request input"""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class ConfigError(AdviceError):
    """Invalid advice configuration"""


class CollaboratorUnavailable(AdviceError):
    """A market-data, portfolio or notification collaborator failed"""

    def __init__(self, source: str, reason: str):
        super().__init__(f"{source} unavailable: {reason}")
        self.source = source
        self.reason = reason
