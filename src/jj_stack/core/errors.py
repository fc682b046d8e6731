"""Error taxonomy for stack operations.

Every error that can be attributed to a single change carries its change id so
that reports can name the offending element.

- GraphError: the local change graph cannot express a stack (never retried)
- RemoteError: the code host refused or failed a request
- MergeConflict: pulled remote code overlaps local edits (non-fatal)
- CycleDetected: a pull request base chain loops back on itself
"""


class StackError(Exception):
    """Base class for all errors raised by stack engines."""

    def __init__(self, message: str, *, change_id: str | None = None) -> None:
        self.change_id = change_id
        super().__init__(message)


class GraphError(StackError):
    """The local revision graph violates a stack invariant."""


class MultipleParents(GraphError):
    """A change inside the mutable range has more than one parent."""

    def __init__(self, change_id: str) -> None:
        super().__init__(
            f"Change {change_id} has more than one parent; stacks must be linear",
            change_id=change_id,
        )


class UnresolvableBase(GraphError):
    """A change's parent is neither on the default branch nor a tracked PR."""

    def __init__(self, change_id: str, parent_id: str) -> None:
        self.parent_id = parent_id
        super().__init__(
            f"Cannot determine a base branch for {change_id}: parent {parent_id} is not "
            "on the default branch and has no pull request",
            change_id=change_id,
        )


class UnresolvableBaseBranch(GraphError):
    """A pull request's base branch is neither the default branch nor a PR head."""

    def __init__(self, pr_number: int, base_branch: str) -> None:
        self.pr_number = pr_number
        self.base_branch = base_branch
        super().__init__(
            f"Cannot follow #{pr_number}: its base branch {base_branch} is not the default "
            "branch and no pull request has it as head"
        )


class ConflictedChange(GraphError):
    """A change still carries unresolved conflicts."""

    def __init__(self, change_id: str) -> None:
        super().__init__(
            f"Change {change_id} has unresolved conflicts; resolve them before pushing",
            change_id=change_id,
        )


class EmptyStack(GraphError):
    """The selected revisions contain no change eligible for stacking."""

    def __init__(self, selector: str) -> None:
        self.selector = selector
        super().__init__(f"No described, mutable changes found in '{selector}'")


class RemoteError(StackError):
    """A request to the code host failed."""


class RemoteAuthError(RemoteError):
    """Credentials are missing or rejected. Fatal for the whole invocation."""


class RemoteNotFound(RemoteError):
    """The referenced pull request or branch does not exist."""


class RemoteConflict(RemoteError):
    """The remote branch moved somewhere this tool did not push."""


class RateLimited(RemoteError):
    """The code host is throttling requests."""


class TransientRemoteError(RemoteError):
    """Network hiccup, timeout or server-side 5xx."""


RETRYABLE_ERRORS: tuple[type[RemoteError], ...] = (RateLimited, TransientRemoteError)


class MergeConflict(StackError):
    """Remote code could not be merged into a change without conflicts."""


class CycleDetected(StackError):
    """A pull request's base chain revisits a pull request."""

    def __init__(self, pr_number: int, chain: list[int]) -> None:
        self.pr_number = pr_number
        self.chain = chain
        path = " -> ".join(f"#{n}" for n in [*chain, pr_number])
        super().__init__(f"Pull request base chain loops back on itself: {path}")


class ConfigError(StackError):
    """Repository settings are missing or invalid."""
