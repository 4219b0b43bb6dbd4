# errors.py — Domain error taxonomy
# Every error carries the HTTP status the API maps it to (see main.py).
from typing import Optional


class DigitalCOOError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(DigitalCOOError):
    """Entity missing or owned by another user"""
    status_code = 404

    def __init__(self, entity: str, message: Optional[str] = None):
        super().__init__(message or f"{entity.replace('_', ' ').capitalize()} not found")
        self.entity = entity


class ValidationError(DigitalCOOError):
    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class ConflictError(DigitalCOOError):
    status_code = 409


class ClassificationError(DigitalCOOError):
    """Classifier output could not be read as a triage result"""


class ParseError(DigitalCOOError):
    """Classifier output could not be read as a task list"""


class ExecutionFailure(DigitalCOOError):
    """Executor failed or produced nothing usable"""


class InfrastructureError(DigitalCOOError):
    pass


class ProviderError(InfrastructureError):
    """LLM provider transport, auth or timeout failure"""


class DriveError(InfrastructureError):
    """Google Drive transport, auth or timeout failure"""
