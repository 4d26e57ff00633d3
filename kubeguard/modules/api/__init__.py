"""
API Module - Black Box Interface

Purpose: Shared data models
Interface: Pydantic models for commands, reports and HTTP payloads
Hidden: Field aliases and validation

Defines the contract between the command channel, the resolver and the HTTP API.
"""

from .models import (
    Command,
    CommandKind,
    CommandReport,
    Commands,
    DispatchStatus,
    ImagesResponse,
    SafeModeNotification,
    WorkloadsResponse,
)

__all__ = [
    "Command",
    "CommandKind",
    "CommandReport",
    "Commands",
    "DispatchStatus",
    "ImagesResponse",
    "SafeModeNotification",
    "WorkloadsResponse",
]
