"""Webhook event models."""

from dataclasses import dataclass, field

from portbot.models.port import PortResult


@dataclass(frozen=True)
class PullRequestEvent:
    """The parts of a pull_request webhook delivery the bot acts on."""

    action: str
    owner: str
    repo: str
    number: int
    merged: bool = False

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"


@dataclass(frozen=True)
class EventOutcome:
    """What handling one event did."""

    action: str
    handled: bool
    port_results: tuple[PortResult, ...] = field(default_factory=tuple)
