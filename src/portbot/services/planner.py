"""Derive port targets from a merged pull request's labels."""

import logging

from portbot.models.port import PortKind, PortPlan, PortRequest, PullRequestRef

logger = logging.getLogger(__name__)


def plan_ports(pr: PullRequestRef) -> PortPlan:
    """Partition a PR's labels into backport targets, forward-port targets and the rest.

    A label contributes a target only when it starts with the exact,
    case-sensitive prefix ("Backport to: " or "Forwardport to: "). Every other
    label is carried onto the PRs the ports open. Labels with an empty target
    are dropped, and a target named twice is ported once.
    """
    targets: dict[PortKind, list[str]] = {PortKind.BACKPORT: [], PortKind.FORWARDPORT: []}
    other_labels: list[str] = []

    for label in pr.labels:
        kind = _port_kind_for_label(label)
        if kind is None:
            other_labels.append(label)
            continue

        branch = label.removeprefix(kind.label_prefix)
        if not branch:
            logger.warning("Ignoring label %r on %s#%d: no branch", label, pr.full_name, pr.number)
            continue
        if branch in targets[kind]:
            continue
        targets[kind].append(branch)

    return PortPlan(
        backport_branches=tuple(targets[PortKind.BACKPORT]),
        forwardport_branches=tuple(targets[PortKind.FORWARDPORT]),
        other_labels=tuple(other_labels),
    )


def _port_kind_for_label(label: str) -> PortKind | None:
    for kind in PortKind:
        if label.startswith(kind.label_prefix):
            return kind
    return None


def build_port_requests(pr: PullRequestRef, plan: PortPlan) -> list[PortRequest]:
    """One request per target branch, backports first."""
    requests = [
        PortRequest(
            source=pr,
            target_branch=branch,
            kind=PortKind.BACKPORT,
            carry_labels=plan.other_labels,
        )
        for branch in plan.backport_branches
    ]
    requests.extend(
        PortRequest(
            source=pr,
            target_branch=branch,
            kind=PortKind.FORWARDPORT,
            carry_labels=plan.other_labels,
        )
        for branch in plan.forwardport_branches
    )
    return requests
