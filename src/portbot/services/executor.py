"""Port a merged pull request onto one target branch.

The port is a forward-only pipeline: remote ref, working copy, checkout,
cherry-pick, push, pull request. A failure in any of those steps ends the
port and leaves every completed side effect in place. Once the pull request
exists, labels, the conflict comment and reviewer requests are best-effort.
"""

import logging
import threading
import time
from collections.abc import Callable
from pathlib import Path
from typing import TypeVar

from portbot.context import BotContext
from portbot.integrations.forge.types import NewPullRequest
from portbot.integrations.git.types import CherryPickOutcome
from portbot.models.port import PortError, PortFailure, PortRequest, PortResult, PortState

logger = logging.getLogger(__name__)

T = TypeVar("T")

MERGE_CONFLICT_LABEL = "Merge Conflict"
SKIP_CI_LABEL = "Skip CI"

_clone_locks: dict[Path, threading.Lock] = {}
_clone_locks_guard = threading.Lock()


def _clone_lock(repo_dir: Path) -> threading.Lock:
    """Lock serializing all working-tree operations on one clone."""
    with _clone_locks_guard:
        return _clone_locks.setdefault(repo_dir, threading.Lock())


def port_title(request: PortRequest) -> str:
    source = request.source
    return f"[{request.target_branch}] {source.title} (#{source.number})"


def port_body(request: PortRequest) -> str:
    return f"## Description\nThis is a {request.kind.value} of #{request.source.number}"


def conflict_commit_message(commit_sha: str) -> str:
    return f"Cherry-pick {commit_sha} with conflicts"


def port_labels(request: PortRequest, had_conflict: bool) -> list[str]:
    """Labels for the port PR: carried labels, conflict markers, then the kind label."""
    labels = list(request.carry_labels)
    if had_conflict:
        labels.extend([MERGE_CONFLICT_LABEL, SKIP_CI_LABEL])
    labels.append(request.kind.kind_label)
    return labels


def conflict_comment(request: PortRequest, new_pr_number: int) -> str:
    """Instructions for the original author to redo the cherry-pick locally."""
    source = request.source
    lines = [
        f"Hello @{source.author}, there are conflicts in this {request.kind.value}.",
        "",
        "Please address them in order to merge this Pull Request. You can execute "
        "the snippet below to reset your branch and resolve the conflict manually.",
        "",
        f"Make sure you replace `origin` by the name of the {source.full_name} remote",
        "```",
        "git fetch --all",
        f"gh pr checkout {new_pr_number} -R {source.full_name}",
        f"git reset --hard origin/{request.target_branch}",
        f"git cherry-pick -m 1 {source.merge_commit_sha}",
        "```",
        "",
    ]
    return "\n".join(lines)


class PortExecutor:
    """Drives git and the forge through one port.

    Instances hold no per-port state and can be reused across requests.
    """

    def __init__(
        self, ctx: BotContext, clock: Callable[[], float] = time.monotonic
    ) -> None:
        """Create PortExecutor with bot context.

        Args:
            ctx: Bot context with injected dependencies
            clock: Monotonic seconds, used for the per-port deadline
        """
        self._git = ctx.git
        self._forge = ctx.forge
        self._config = ctx.config
        self._clock = clock

    def execute(self, request: PortRequest) -> PortResult:
        """Run the port and return its terminal result.

        Never raises PortError: a failed fatal step is reported in
        PortResult.error, failed follow-up steps in follow_up_errors.
        """
        source = request.source
        repo_dir = self._config.clone_dir(source.owner, source.repo)
        reached = PortState.START
        had_conflict = False
        deadline = self._clock() + self._config.port_deadline
        logger.info("Starting %s on %s", request.describe(), request.working_branch)

        try:
            if not source.merge_commit_sha:
                raise PortError(PortFailure.CHERRY_PICK_FAILED, request, "no merge commit")

            self._create_working_ref(request, deadline)
            reached = PortState.REF_CREATED

            with _clone_lock(repo_dir):
                self._ensure_clone(request, repo_dir, deadline)
                reached = PortState.CLONED

                self._step(
                    request, PortFailure.FETCH_FAILED, deadline, self._git.fetch, repo_dir
                )
                self._step(
                    request,
                    PortFailure.CHECKOUT_FAILED,
                    deadline,
                    self._git.checkout_remote_branch,
                    repo_dir,
                    request.working_branch,
                )
                reached = PortState.BRANCH_CHECKED_OUT

                had_conflict = self._cherry_pick(request, repo_dir, deadline)
                reached = PortState.CHERRY_PICKED

                self._step(
                    request,
                    PortFailure.PUSH_FAILED,
                    deadline,
                    self._git.push,
                    repo_dir,
                    request.working_branch,
                )
                reached = PortState.PUSHED

            new_pr_number = self._step(
                request,
                PortFailure.PR_CREATE_FAILED,
                deadline,
                self._forge.create_pull_request,
                source.owner,
                source.repo,
                NewPullRequest(
                    head=request.working_branch,
                    base=request.target_branch,
                    title=port_title(request),
                    body=port_body(request),
                    draft=had_conflict,
                ),
            )
        except PortError as e:
            logger.debug("Port stopped after %s", reached.value, exc_info=True)
            return PortResult(
                request=request,
                new_pr_number=None,
                had_conflict=had_conflict,
                reached=reached,
                error=e,
            )

        logger.info("Opened #%d for %s", new_pr_number, request.describe())
        reached, follow_up_errors = self._finish_pull_request(
            request, new_pr_number, had_conflict
        )
        return PortResult(
            request=request,
            new_pr_number=new_pr_number,
            had_conflict=had_conflict,
            reached=reached,
            follow_up_errors=tuple(follow_up_errors),
        )

    def _step(
        self,
        request: PortRequest,
        failure: PortFailure,
        deadline: float,
        action: Callable[..., T],
        *args: object,
        **kwargs: object,
    ) -> T:
        if self._clock() >= deadline:
            raise PortError(
                failure,
                request,
                f"port deadline of {self._config.port_deadline:g}s exceeded",
            )
        try:
            return action(*args, **kwargs)
        except RuntimeError as e:
            raise PortError(failure, request, str(e)) from e

    def _create_working_ref(self, request: PortRequest, deadline: float) -> None:
        """Point the working branch at the target branch tip.

        A working branch already at the tip is reused, so a port that crashed
        right after this step can be re-run. One pointing anywhere else belongs
        to an earlier port and is rejected.
        """
        source = request.source
        base_sha = self._step(
            request,
            PortFailure.REF_LOOKUP_FAILED,
            deadline,
            self._forge.get_branch_sha,
            source.owner,
            source.repo,
            request.target_branch,
        )
        if base_sha is None:
            raise PortError(
                PortFailure.REF_LOOKUP_FAILED,
                request,
                f"branch '{request.target_branch}' does not exist",
            )

        existing_sha = self._step(
            request,
            PortFailure.REF_LOOKUP_FAILED,
            deadline,
            self._forge.get_branch_sha,
            source.owner,
            source.repo,
            request.working_branch,
        )
        if existing_sha == base_sha:
            logger.info("Reusing %s, already at %s", request.working_branch, base_sha)
            return
        if existing_sha is not None:
            raise PortError(
                PortFailure.REF_CREATE_FAILED,
                request,
                f"branch '{request.working_branch}' already exists at {existing_sha}",
            )

        self._step(
            request,
            PortFailure.REF_CREATE_FAILED,
            deadline,
            self._forge.create_ref,
            source.owner,
            source.repo,
            request.working_branch,
            base_sha,
        )

    def _ensure_clone(self, request: PortRequest, repo_dir: Path, deadline: float) -> None:
        if self._git.has_clone(repo_dir):
            logger.debug("Reusing working copy at %s", repo_dir)
            return
        source = request.source
        url = self._config.clone_url(source.owner, source.repo)
        self._step(request, PortFailure.CLONE_FAILED, deadline, self._git.clone, url, repo_dir)

    def _cherry_pick(self, request: PortRequest, repo_dir: Path, deadline: float) -> bool:
        """Cherry-pick the merge commit; return True if it was committed with conflicts."""
        sha = request.source.merge_commit_sha
        identity = self._config.bot_identity
        outcome = self._step(
            request,
            PortFailure.CHERRY_PICK_FAILED,
            deadline,
            self._git.cherry_pick,
            repo_dir,
            sha,
        )

        if outcome is CherryPickOutcome.CLEAN:
            self._step(
                request,
                PortFailure.COMMIT_FAILED,
                deadline,
                self._git.amend_author,
                repo_dir,
                identity,
            )
            return False

        logger.warning("Conflicts cherry-picking %s onto %s", sha, request.target_branch)
        self._step(request, PortFailure.COMMIT_FAILED, deadline, self._git.stage_all, repo_dir)
        self._step(
            request,
            PortFailure.COMMIT_FAILED,
            deadline,
            self._git.commit,
            repo_dir,
            conflict_commit_message(sha),
            identity,
        )
        return True

    def _best_effort(
        self,
        request: PortRequest,
        failure: PortFailure,
        action: Callable[..., T],
        *args: object,
        **kwargs: object,
    ) -> tuple[T | None, PortError | None]:
        try:
            return action(*args, **kwargs), None
        except RuntimeError as e:
            error = PortError(failure, request, str(e))
            logger.warning("%s", error)
            return None, error

    def _finish_pull_request(
        self, request: PortRequest, new_pr_number: int, had_conflict: bool
    ) -> tuple[PortState, list[PortError]]:
        """Label the new PR, explain conflicts and copy reviewers.

        Returns:
            The last state reached (PR_CREATED if labelling failed,
            LABELS_APPLIED if a later step failed, DONE otherwise) and the
            follow-up errors
        """
        source = request.source
        reached = PortState.PR_CREATED
        errors: list[PortError] = []

        _, error = self._best_effort(
            request,
            PortFailure.LABEL_APPLY_FAILED,
            self._forge.add_labels,
            source.owner,
            source.repo,
            new_pr_number,
            port_labels(request, had_conflict),
        )
        if error is not None:
            errors.append(error)
        else:
            reached = PortState.LABELS_APPLIED

        if had_conflict:
            _, error = self._best_effort(
                request,
                PortFailure.COMMENT_FAILED,
                self._forge.create_comment,
                source.owner,
                source.repo,
                new_pr_number,
                conflict_comment(request, new_pr_number),
            )
            if error is not None:
                errors.append(error)

        reviewers, error = self._best_effort(
            request,
            PortFailure.REVIEWER_LIST_FAILED,
            self._forge.list_requested_reviewers,
            source.owner,
            source.repo,
            source.number,
        )
        if error is not None:
            errors.append(error)

        users = list(reviewers.users) if reviewers is not None else []
        teams = list(reviewers.teams) if reviewers is not None else []
        users.append(source.author)
        _, error = self._best_effort(
            request,
            PortFailure.REVIEWER_REQUEST_FAILED,
            self._forge.request_reviewers,
            source.owner,
            source.repo,
            new_pr_number,
            users=users,
            teams=teams,
        )
        if error is not None:
            errors.append(error)

        if not errors:
            reached = PortState.DONE
        return reached, errors
