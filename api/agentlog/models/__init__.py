from .base import Base
from .log_record import LegacyEvent, LogRecordRow
from .log_vector import LogVector

__all__ = [
    "Base",
    "LegacyEvent",
    "LogRecordRow",
    "LogVector",
]
