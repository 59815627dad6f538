from .settings import ModuleSettings, normalize_settings
from .submission import Attachment, SubmissionResult

__all__ = ["Attachment", "ModuleSettings", "SubmissionResult", "normalize_settings"]
