"""Expand a short branch name to the branch it names."""

from __future__ import annotations

from branchflow.core.errors import AmbiguousName, NameNotFound, UsageError


def resolve_name(name: str, prefix: str, branches: list[str]) -> str:
    """Resolve name (or a leading part of it) among local branches.

    An exact match on prefix + name wins outright. Otherwise the
    branches starting with prefix + name are candidates and exactly
    one of them must exist.

    Args:
        name: Short name or leading part of one, without the prefix
        prefix: Workflow branch prefix, e.g. "feature/"
        branches: Local branch names

    Returns:
        Short name of the matching branch, prefix stripped

    Raises:
        UsageError: name is empty
        NameNotFound: nothing matches
        AmbiguousName: more than one branch matches
    """
    if not name:
        raise UsageError("Name or name prefix is required.")

    wanted = prefix + name
    if wanted in branches:
        return name

    matches = sorted(b for b in branches if b.startswith(wanted))
    if not matches:
        raise NameNotFound(name, prefix)
    if len(matches) > 1:
        raise AmbiguousName(name, matches)
    return matches[0][len(prefix):]


def current_topic(prefix: str, current_branch: str | None) -> str:
    """Short name of the checked-out branch if it belongs to prefix."""
    if current_branch and current_branch.startswith(prefix):
        short = current_branch[len(prefix):]
        if short:
            return short
    raise UsageError(
        f"The current branch is no '{prefix}' branch. "
        f"Please specify a name."
    )
