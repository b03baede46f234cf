"""Port workflow data models."""

from dataclasses import dataclass, field
from enum import Enum

from portbot.naming import working_branch_name


class PortKind(str, Enum):
    """Direction of a port relative to the branch the change was merged into."""

    BACKPORT = "backport"
    FORWARDPORT = "forwardport"

    @property
    def label_prefix(self) -> str:
        """Prefix of the label that requests this kind of port."""
        if self is PortKind.BACKPORT:
            return "Backport to: "
        return "Forwardport to: "

    @property
    def kind_label(self) -> str:
        """Label applied to every PR opened by this kind of port."""
        if self is PortKind.BACKPORT:
            return "Backport"
        return "Forwardport"


class PortState(str, Enum):
    """Checkpoints of the port state machine, in order."""

    START = "start"
    REF_CREATED = "ref_created"
    CLONED = "cloned"
    BRANCH_CHECKED_OUT = "branch_checked_out"
    CHERRY_PICKED = "cherry_picked"
    PUSHED = "pushed"
    PR_CREATED = "pr_created"
    LABELS_APPLIED = "labels_applied"
    DONE = "done"


class PortFailure(str, Enum):
    """Classification of a failed port step."""

    REF_LOOKUP_FAILED = "ref_lookup_failed"
    REF_CREATE_FAILED = "ref_create_failed"
    CLONE_FAILED = "clone_failed"
    FETCH_FAILED = "fetch_failed"
    CHECKOUT_FAILED = "checkout_failed"
    CHERRY_PICK_FAILED = "cherry_pick_failed"
    COMMIT_FAILED = "commit_failed"
    PUSH_FAILED = "push_failed"
    PR_CREATE_FAILED = "pr_create_failed"
    LABEL_APPLY_FAILED = "label_apply_failed"
    COMMENT_FAILED = "comment_failed"
    REVIEWER_LIST_FAILED = "reviewer_list_failed"
    REVIEWER_REQUEST_FAILED = "reviewer_request_failed"
    INTERNAL_ERROR = "internal_error"


@dataclass(frozen=True)
class PullRequestRef:
    """Snapshot of a merged pull request, taken when the merge event arrives."""

    owner: str
    repo: str
    number: int
    merge_commit_sha: str
    title: str
    author: str
    labels: tuple[str, ...] = ()

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"


@dataclass(frozen=True)
class PortPlan:
    """Target branches and carried labels derived from a PR's labels."""

    backport_branches: tuple[str, ...]
    forwardport_branches: tuple[str, ...]
    other_labels: tuple[str, ...]

    @property
    def is_empty(self) -> bool:
        return not self.backport_branches and not self.forwardport_branches


@dataclass(frozen=True)
class PortRequest:
    """One port of a merged PR onto one target branch."""

    source: PullRequestRef
    target_branch: str
    kind: PortKind
    carry_labels: tuple[str, ...] = ()

    @property
    def working_branch(self) -> str:
        return working_branch_name(self.kind, self.source.number, self.target_branch)

    def describe(self) -> str:
        """Short human-readable identity used in logs and error messages."""
        return (
            f"{self.kind.value} of {self.source.full_name}#{self.source.number}"
            f" to {self.target_branch}"
        )


class PortError(Exception):
    """Raised when a port step fails.

    Carries the failure class and the request so the orchestrator can report
    which branch of which PR broke, and where.
    """

    def __init__(self, failure: PortFailure, request: PortRequest, detail: str) -> None:
        self.failure = failure
        self.request = request
        self.detail = detail
        super().__init__(f"{failure.value} during {request.describe()}: {detail}")


@dataclass(frozen=True)
class PortResult:
    """Terminal outcome of one port.

    error is set when a fatal step failed; follow_up_errors collects the
    best-effort steps (labels, conflict comment, reviewers) that failed after
    the PR was opened.
    """

    request: PortRequest
    new_pr_number: int | None
    had_conflict: bool
    reached: PortState
    error: PortError | None = None
    follow_up_errors: tuple[PortError, ...] = field(default_factory=tuple)

    @property
    def succeeded(self) -> bool:
        return self.error is None
