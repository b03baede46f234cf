"""Data models for portbot."""

from portbot.models.port import (
    PortError,
    PortFailure,
    PortKind,
    PortPlan,
    PortRequest,
    PortResult,
    PortState,
    PullRequestRef,
)

__all__ = [
    "PortError",
    "PortFailure",
    "PortKind",
    "PortPlan",
    "PortRequest",
    "PortResult",
    "PortState",
    "PullRequestRef",
]
