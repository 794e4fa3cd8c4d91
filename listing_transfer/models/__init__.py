"""Listing transfer database models."""

from .base import Base
from .code import Broker, ExternalCode
from .job import AutomationJob
from .log import LogEntry
from .setting import Setting

__all__ = [
    "Base",
    "AutomationJob",
    "Broker",
    "ExternalCode",
    "LogEntry",
    "Setting",
]
