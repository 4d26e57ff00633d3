"""
Kubeguard shared data models.

These models define the structure of the data exchanged with the control
backend and exposed over the HTTP callback API.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

# Enums


class CommandKind(str, Enum):
    """Command names sent by the backend."""

    UPDATE = "update"
    INJECT = "inject"
    REMOVE = "remove"
    RESTART = "restart"
    ENCRYPT = "encryptSecret"
    DECRYPT = "decryptSecret"
    SCAN = "scan"
    UNREGISTERED = "unregistered"


class DispatchStatus(str, Enum):
    """Outcome of dispatching a command."""

    SUCCESS = "success"
    PARTIAL = "partial"
    FAILURE = "failure"
    REJECTED = "rejected"
    UNHANDLED = "unhandled"


# Backend Models (command channel input)


class Command(BaseModel):
    """A single command addressed to workloads in this cluster."""

    model_config = ConfigDict(populate_by_name=True)

    command_name: str = Field(..., alias="commandName", min_length=1, description="Command kind")
    response_id: Optional[str] = Field(None, alias="responseID", description="Backend response tracking ID")
    wlid: str = Field(default="", description="Explicit workload identifier")
    wild_wlid: str = Field(default="", alias="wildWlid", description="Wildcard workload identifier")
    sid: str = Field(default="", description="Explicit secret identifier")
    wild_sid: str = Field(default="", alias="wildSid", description="Wildcard secret identifier")
    job_tracking: Dict[str, Any] = Field(default_factory=dict, alias="jobTracking")
    args: Dict[str, Any] = Field(default_factory=dict, description="Command arguments")

    def get_labels(self) -> Dict[str, str]:
        """Label selector carried in the command arguments."""
        labels = self.args.get("labels") or {}
        if not isinstance(labels, dict):
            return {}
        return {str(key): str(value) for key, value in labels.items()}


class Commands(BaseModel):
    """Batch of commands delivered in one message."""

    commands: List[Command] = Field(default_factory=list)


# Agent Models (command channel output)


class CommandReport(BaseModel):
    """Result of dispatching one command, posted back to the backend."""

    command_name: str
    response_id: Optional[str] = None
    target_id: str = Field(default="", description="WLID or wildcard WLID addressed")
    targets: List[str] = Field(default_factory=list)
    instance_ids: Dict[str, List[str]] = Field(default_factory=dict)
    errors: List[str] = Field(default_factory=list)
    status: DispatchStatus


# HTTP API Models


class SafeModeNotification(BaseModel):
    """Notification sent by an instrumented container."""

    model_config = ConfigDict(populate_by_name=True)

    pod_name: str = Field(..., alias="podName", min_length=1)
    namespace: str = Field(default="")
    container_name: str = Field(default="", alias="containerName")
    wlid: str = Field(default="")
    instance_id: str = Field(default="", alias="instanceID")
    status_code: int = Field(default=0, alias="statusCode")
    reason: str = Field(default="")
    message: str = Field(default="")

    @model_validator(mode="after")
    def default_instance_id(self):
        """Instances are addressed by pod name unless told otherwise."""
        if not self.instance_id:
            self.instance_id = self.pod_name
        return self


class ImagesResponse(BaseModel):
    """Snapshot of image id -> WLIDs."""

    images: Dict[str, List[str]]


class WorkloadsResponse(BaseModel):
    """Snapshot of WLID -> container -> image id."""

    workloads: Dict[str, Dict[str, str]]
