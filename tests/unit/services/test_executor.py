"""Tests for PortExecutor against fake git and forge."""

import threading
from dataclasses import replace
from pathlib import Path

from portbot.config import BotConfig
from portbot.context import BotContext
from portbot.integrations.forge.fake import FakeForge
from portbot.integrations.forge.types import NewPullRequest, RequestedReviewers
from portbot.integrations.git.fake import FakeGit
from portbot.models.port import PortFailure, PortKind, PortRequest, PortState
from portbot.services.executor import (
    PortExecutor,
    _clone_lock,
    conflict_comment,
    port_labels,
    port_title,
)
from tests.test_utils.builders import CLONE_DIR, MERGE_SHA, WORKDIR, make_pr

WORKING_BRANCH = "backport-100-to-release-18.0"


def _request(
    target_branch: str = "release-18.0",
    kind: PortKind = PortKind.BACKPORT,
    *,
    merge_commit_sha: str = MERGE_SHA,
    carry_labels: tuple[str, ...] = ("Type: Bug",),
) -> PortRequest:
    return PortRequest(
        source=make_pr(merge_commit_sha=merge_commit_sha),
        target_branch=target_branch,
        kind=kind,
        carry_labels=carry_labels,
    )


def _forge(**kwargs) -> FakeForge:
    branches = kwargs.pop("branches", {"main": "sha-main", "release-18.0": "sha-18"})
    return FakeForge(branches=branches, **kwargs)


def _executor(git: FakeGit, forge: FakeForge) -> PortExecutor:
    return PortExecutor(BotContext.for_test(git=git, forge=forge, workdir=WORKDIR))


class TestCleanPort:
    """A cherry-pick that applies cleanly."""

    def test_result_reaches_done(self) -> None:
        """The port succeeds and reports the new PR."""
        result = _executor(FakeGit(), _forge()).execute(_request())

        assert result.succeeded
        assert result.reached is PortState.DONE
        assert result.new_pr_number == 1000
        assert result.had_conflict is False
        assert result.follow_up_errors == ()

    def test_creates_working_ref_at_target_tip(self) -> None:
        """The working branch is created on the forge at the target branch SHA."""
        forge = _forge()

        _executor(FakeGit(), forge).execute(_request())

        assert forge.created_refs == [(WORKING_BRANCH, "sha-18")]

    def test_git_operations_in_order(self) -> None:
        """Clone, fetch, checkout, cherry-pick, amend and push run in sequence."""
        git = FakeGit()

        _executor(git, _forge()).execute(_request())

        assert git.operations == [
            ("clone", "git@github.com:vitessio/vitess.git", str(CLONE_DIR)),
            ("fetch", str(CLONE_DIR), "origin"),
            ("checkout_remote_branch", str(CLONE_DIR), WORKING_BRANCH, "origin"),
            ("cherry_pick", str(CLONE_DIR), MERGE_SHA),
            ("amend_author", str(CLONE_DIR)),
            ("push", str(CLONE_DIR), WORKING_BRANCH, "origin"),
        ]

    def test_amends_author_to_bot(self) -> None:
        """The cherry-picked commit is re-authored as the bot."""
        git = FakeGit()
        executor = _executor(git, _forge())

        executor.execute(_request())

        [(repo_dir, author)] = git.amended
        assert repo_dir == CLONE_DIR
        assert author.name == "port-bot[bot]"
        assert git.commits == []

    def test_opens_ready_pull_request(self) -> None:
        """The PR targets the branch, is not a draft and links the source."""
        forge = _forge()

        _executor(FakeGit(), forge).execute(_request())

        assert forge.created_pull_requests == [
            (
                1000,
                NewPullRequest(
                    head=WORKING_BRANCH,
                    base="release-18.0",
                    title="[release-18.0] Fix the planner (#100)",
                    body="## Description\nThis is a backport of #100",
                    draft=False,
                    maintainer_can_modify=True,
                ),
            )
        ]

    def test_labels_and_reviewers(self) -> None:
        """Carried labels plus the kind label; the author is asked to review."""
        forge = _forge()

        _executor(FakeGit(), forge).execute(_request())

        assert forge.added_labels == [(1000, ["Type: Bug", "Backport"])]
        assert forge.requested_reviewers == [(1000, ["alice"], [])]
        assert forge.comments == []

    def test_reuses_existing_clone(self) -> None:
        """No clone when the working copy already exists."""
        git = FakeGit(existing_clones={CLONE_DIR})

        _executor(git, _forge()).execute(_request())

        assert git.cloned == []
        assert git.operations[0] == ("fetch", str(CLONE_DIR), "origin")

    def test_forwardport(self) -> None:
        """Forward-ports use their own branch name, body and kind label."""
        forge = _forge()

        result = _executor(FakeGit(), forge).execute(
            _request("main", PortKind.FORWARDPORT, carry_labels=())
        )

        assert result.succeeded
        [(_, pr)] = forge.created_pull_requests
        assert pr.head == "forwardport-100-to-main"
        assert pr.body == "## Description\nThis is a forwardport of #100"
        assert forge.added_labels == [(1000, ["Forwardport"])]


class TestConflictedPort:
    """A cherry-pick that stops with conflicts."""

    def test_commits_conflicts_and_opens_draft(self) -> None:
        """Conflicts are committed as-is and the PR is a draft."""
        git = FakeGit(conflicting_shas={MERGE_SHA})
        forge = _forge()

        result = _executor(git, forge).execute(_request())

        assert result.succeeded
        assert result.had_conflict is True
        assert result.reached is PortState.DONE
        [(_, message, author)] = git.commits
        assert message == f"Cherry-pick {MERGE_SHA} with conflicts"
        assert author.email == "port-bot@example.com"
        assert git.amended == []
        [(_, pr)] = forge.created_pull_requests
        assert pr.draft is True

    def test_stages_before_committing(self) -> None:
        """Everything in the working tree is staged, then committed."""
        git = FakeGit(conflicting_shas={MERGE_SHA})

        _executor(git, _forge()).execute(_request())

        names = [op[0] for op in git.operations]
        assert names[names.index("cherry_pick") :] == ["cherry_pick", "stage_all", "commit", "push"]

    def test_labels_include_conflict_markers(self) -> None:
        """Conflict labels sit between carried labels and the kind label."""
        forge = _forge()

        _executor(FakeGit(conflicting_shas={MERGE_SHA}), forge).execute(_request())

        assert forge.added_labels == [
            (1000, ["Type: Bug", "Merge Conflict", "Skip CI", "Backport"])
        ]

    def test_comments_resolution_instructions(self) -> None:
        """The author gets a snippet to redo the cherry-pick."""
        forge = _forge()

        _executor(FakeGit(conflicting_shas={MERGE_SHA}), forge).execute(_request())

        [(number, body)] = forge.comments
        assert number == 1000
        assert "@alice" in body
        assert "gh pr checkout 1000 -R vitessio/vitess" in body
        assert "git reset --hard origin/release-18.0" in body
        assert f"git cherry-pick -m 1 {MERGE_SHA}" in body


class TestWorkingRef:
    """Working branch creation and reuse."""

    def test_missing_target_branch(self) -> None:
        """A target branch that does not exist stops the port before any side effect."""
        git = FakeGit()
        forge = _forge()

        result = _executor(git, forge).execute(_request("release-99.0"))

        assert not result.succeeded
        assert result.error is not None
        assert result.error.failure is PortFailure.REF_LOOKUP_FAILED
        assert "release-99.0" in result.error.detail
        assert result.reached is PortState.START
        assert forge.created_refs == []
        assert git.operations == []

    def test_existing_working_ref_at_tip_is_reused(self) -> None:
        """A leftover working branch at the target tip is not recreated."""
        forge = _forge(branches={"release-18.0": "sha-18", WORKING_BRANCH: "sha-18"})

        result = _executor(FakeGit(), forge).execute(_request())

        assert result.succeeded
        assert forge.created_refs == []

    def test_existing_working_ref_elsewhere_fails(self) -> None:
        """A working branch that moved on is never overwritten."""
        git = FakeGit()
        forge = _forge(branches={"release-18.0": "sha-18", WORKING_BRANCH: "sha-old"})

        result = _executor(git, forge).execute(_request())

        assert result.error is not None
        assert result.error.failure is PortFailure.REF_CREATE_FAILED
        assert "sha-old" in result.error.detail
        assert git.operations == []

    def test_lookup_error(self) -> None:
        """A forge error while resolving the target is a lookup failure."""
        forge = _forge(failures={"get_branch_sha": "HTTP 500"})

        result = _executor(FakeGit(), forge).execute(_request())

        assert result.error is not None
        assert result.error.failure is PortFailure.REF_LOOKUP_FAILED
        assert result.error.detail == "HTTP 500"

    def test_create_error(self) -> None:
        """A forge error while creating the ref is a create failure."""
        forge = _forge(failures={"create_ref": "HTTP 422"})

        result = _executor(FakeGit(), forge).execute(_request())

        assert result.error is not None
        assert result.error.failure is PortFailure.REF_CREATE_FAILED
        assert result.reached is PortState.START


class TestFatalFailures:
    """Failures that end the port before a PR exists."""

    def test_no_merge_commit(self) -> None:
        """Without a merge commit nothing is attempted."""
        git = FakeGit()
        forge = _forge()

        result = _executor(git, forge).execute(_request(merge_commit_sha=""))

        assert result.error is not None
        assert result.error.failure is PortFailure.CHERRY_PICK_FAILED
        assert forge.created_refs == []
        assert git.operations == []

    def test_clone_failure(self) -> None:
        result = _executor(FakeGit(failures={"clone": "denied"}), _forge()).execute(_request())

        assert result.error is not None
        assert result.error.failure is PortFailure.CLONE_FAILED
        assert result.reached is PortState.REF_CREATED

    def test_fetch_failure(self) -> None:
        result = _executor(FakeGit(failures={"fetch": "offline"}), _forge()).execute(_request())

        assert result.error is not None
        assert result.error.failure is PortFailure.FETCH_FAILED
        assert result.reached is PortState.CLONED

    def test_checkout_failure(self) -> None:
        git = FakeGit(failures={"checkout_remote_branch": "no such ref"})

        result = _executor(git, _forge()).execute(_request())

        assert result.error is not None
        assert result.error.failure is PortFailure.CHECKOUT_FAILED
        assert result.reached is PortState.CLONED

    def test_cherry_pick_failure(self) -> None:
        """A cherry-pick error that is not a conflict."""
        git = FakeGit(failures={"cherry_pick": "bad object"})

        result = _executor(git, _forge()).execute(_request())

        assert result.error is not None
        assert result.error.failure is PortFailure.CHERRY_PICK_FAILED
        assert result.reached is PortState.BRANCH_CHECKED_OUT
        assert not result.had_conflict

    def test_commit_failure(self) -> None:
        git = FakeGit(failures={"amend_author": "hook rejected"})

        result = _executor(git, _forge()).execute(_request())

        assert result.error is not None
        assert result.error.failure is PortFailure.COMMIT_FAILED

    def test_push_failure_keeps_ref(self) -> None:
        """Nothing is rolled back when the push fails."""
        forge = _forge()

        result = _executor(FakeGit(failures={"push": "rejected"}), forge).execute(_request())

        assert result.error is not None
        assert result.error.failure is PortFailure.PUSH_FAILED
        assert result.reached is PortState.CHERRY_PICKED
        assert forge.created_refs == [(WORKING_BRANCH, "sha-18")]
        assert forge.created_pull_requests == []

    def test_pull_request_failure(self) -> None:
        forge = _forge(failures={"create_pull_request": "HTTP 422"})

        result = _executor(FakeGit(), forge).execute(_request())

        assert result.error is not None
        assert result.error.failure is PortFailure.PR_CREATE_FAILED
        assert result.reached is PortState.PUSHED
        assert result.new_pr_number is None
        assert forge.added_labels == []


class TestFollowUps:
    """Best-effort steps after the PR is open."""

    def test_label_failure_is_recorded(self) -> None:
        """A label failure does not fail the port and reviewers are still requested."""
        forge = _forge(failures={"add_labels": "HTTP 403"})

        result = _executor(FakeGit(), forge).execute(_request())

        assert result.succeeded
        assert result.reached is PortState.PR_CREATED
        assert [e.failure for e in result.follow_up_errors] == [PortFailure.LABEL_APPLY_FAILED]
        assert forge.requested_reviewers == [(1000, ["alice"], [])]

    def test_comment_failure_is_recorded(self) -> None:
        forge = _forge(failures={"create_comment": "HTTP 403"})

        result = _executor(FakeGit(conflicting_shas={MERGE_SHA}), forge).execute(_request())

        assert result.succeeded
        assert result.reached is PortState.LABELS_APPLIED
        assert [e.failure for e in result.follow_up_errors] == [PortFailure.COMMENT_FAILED]

    def test_copies_requested_reviewers(self) -> None:
        """Source reviewers and teams are requested along with the author."""
        forge = _forge(
            reviewers={100: RequestedReviewers(users=("bob",), teams=("query-serving",))}
        )

        _executor(FakeGit(), forge).execute(_request())

        assert forge.requested_reviewers == [(1000, ["bob", "alice"], ["query-serving"])]

    def test_reviewer_list_failure_requests_author(self) -> None:
        forge = _forge(failures={"list_requested_reviewers": "HTTP 500"})

        result = _executor(FakeGit(), forge).execute(_request())

        assert [e.failure for e in result.follow_up_errors] == [PortFailure.REVIEWER_LIST_FAILED]
        assert forge.requested_reviewers == [(1000, ["alice"], [])]

    def test_reviewer_request_failure_is_recorded(self) -> None:
        forge = _forge(failures={"request_reviewers": "HTTP 422"})

        result = _executor(FakeGit(), forge).execute(_request())

        assert result.succeeded
        assert result.reached is PortState.LABELS_APPLIED
        assert [e.failure for e in result.follow_up_errors] == [
            PortFailure.REVIEWER_REQUEST_FAILED
        ]


class TestFormatting:
    """Tests for the text the executor writes."""

    def test_port_title(self) -> None:
        assert port_title(_request()) == "[release-18.0] Fix the planner (#100)"

    def test_port_labels_without_conflict(self) -> None:
        assert port_labels(_request(), had_conflict=False) == ["Type: Bug", "Backport"]

    def test_conflict_comment_names_remote(self) -> None:
        body = conflict_comment(_request(), 1234)

        assert "there are conflicts in this backport" in body
        assert "name of the vitessio/vitess remote" in body
        assert "git fetch --all" in body


class _BlockingFetchGit(FakeGit):
    """FakeGit whose first fetch holds until released."""

    def __init__(self) -> None:
        super().__init__()
        self.first_fetch_started = threading.Event()
        self.release_first_fetch = threading.Event()
        self._blocked_once = False

    def fetch(self, repo_dir: Path, remote: str = "origin") -> None:
        super().fetch(repo_dir, remote)
        if not self._blocked_once:
            self._blocked_once = True
            self.first_fetch_started.set()
            self.release_first_fetch.wait(timeout=5)


class TestCloneLock:
    """Working-tree steps on one clone are serialized."""

    def test_same_lock_for_same_clone(self) -> None:
        assert _clone_lock(Path("/work/o/r")) is _clone_lock(Path("/work/o/r"))
        assert _clone_lock(Path("/work/o/r")) is not _clone_lock(Path("/work/o/other"))

    def test_ports_sharing_a_clone_do_not_interleave(self) -> None:
        """A second port waits for the first one's fetch-to-push sequence."""
        git = _BlockingFetchGit()
        forge = _forge(branches={"release-17.0": "sha-17", "release-18.0": "sha-18"})
        executor = _executor(git, forge)
        results = {}

        def port(branch: str) -> None:
            results[branch] = executor.execute(_request(branch))

        first = threading.Thread(target=port, args=("release-17.0",))
        first.start()
        assert git.first_fetch_started.wait(timeout=5)

        second = threading.Thread(target=port, args=("release-18.0",))
        second.start()
        second.join(timeout=0.2)
        assert second.is_alive()
        assert [op[0] for op in git.operations].count("fetch") == 1

        git.release_first_fetch.set()
        first.join(timeout=5)
        second.join(timeout=5)

        assert all(result.succeeded for result in results.values())
        sequence = ["fetch", "checkout_remote_branch", "cherry_pick", "amend_author", "push"]
        assert [op[0] for op in git.operations] == ["clone", *sequence, *sequence]
        assert [op[2] for op in git.operations if op[0] == "checkout_remote_branch"] == [
            "backport-100-to-release-17.0",
            "backport-100-to-release-18.0",
        ]


class _Clock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class _SlowFetchGit(FakeGit):
    """FakeGit whose fetch advances a test clock."""

    def __init__(self, clock: _Clock, seconds: float) -> None:
        super().__init__()
        self._clock = clock
        self._seconds = seconds

    def fetch(self, repo_dir: Path, remote: str = "origin") -> None:
        super().fetch(repo_dir, remote)
        self._clock.now += self._seconds


class TestPortDeadline:
    """The whole port runs under one deadline."""

    def test_step_after_deadline_fails(self) -> None:
        """Once the deadline passes, the next fatal step fails without running."""
        clock = _Clock()
        git = _SlowFetchGit(clock, seconds=601)
        forge = _forge()
        ctx = BotContext.for_test(git=git, forge=forge, workdir=WORKDIR)

        result = PortExecutor(ctx, clock=clock).execute(_request())

        assert result.error is not None
        assert result.error.failure is PortFailure.CHECKOUT_FAILED
        assert result.error.detail == "port deadline of 600s exceeded"
        assert result.reached is PortState.CLONED
        assert "checkout_remote_branch" not in [op[0] for op in git.operations]
        assert forge.created_pull_requests == []

    def test_zero_deadline_touches_nothing(self) -> None:
        git = FakeGit()
        forge = _forge()
        config = replace(BotConfig.for_test(workdir=WORKDIR), port_deadline=0)
        ctx = BotContext(git=git, forge=forge, config=config)

        result = PortExecutor(ctx, clock=_Clock()).execute(_request())

        assert result.error is not None
        assert result.error.failure is PortFailure.REF_LOOKUP_FAILED
        assert git.operations == []
        assert forge.created_refs == []
