"""Naming of the branches a port creates."""


def working_branch_name(kind: str, pr_number: int, target_branch: str) -> str:
    """Return the working branch name for porting a PR onto a target branch.

    kind is "backport" or "forwardport" (a PortKind member works too). The
    format is shared with already-opened port PRs, so it must not change:

    >>> working_branch_name("backport", 100, "release-18")
    'backport-100-to-release-18'
    """
    kind_value = getattr(kind, "value", kind)
    return f"{kind_value}-{pr_number}-to-{target_branch}"
