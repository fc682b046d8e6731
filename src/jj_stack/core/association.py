"""Change -> pull request links stored as trailers in change descriptions.

The link is one-directional: a change names its pull request, the pull request
knows nothing about the change.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from jj_stack.core.config import StackConfig
from jj_stack.core.jj.abc import Jujutsu
from jj_stack.core.jj.types import Change
from jj_stack.core.message import decode, encode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Association:
    change_id: str
    pr_number: int
    last_commit: str | None


class AssociationStore:
    """Reads and writes associations through change descriptions."""

    def __init__(self, jj: Jujutsu, config: StackConfig, repo_root: Path) -> None:
        self._jj = jj
        self._config = config
        self._repo_root = repo_root

    def read(self, change: Change) -> Association | None:
        message = decode(change.description)
        if message.pr_ref is None:
            return None
        number = self._config.parse_pull_request_field(message.pr_ref)
        if number is None:
            logger.debug(
                "Ignoring pull request reference %r on %s: not in %s/%s",
                message.pr_ref,
                change.change_id,
                self._config.owner,
                self._config.repo,
            )
            return None
        return Association(
            change_id=change.change_id, pr_number=number, last_commit=message.last_commit
        )

    def find_change(self, pr_number: int) -> str | None:
        """Find the mutable change associated with a pull request, if any."""
        url = self._config.pull_request_url(pr_number)
        for change_id in self._jj.find_changes_containing(self._repo_root, url):
            association = self.read(self._jj.get_change(self._repo_root, change_id))
            if association is not None and association.pr_number == pr_number:
                return change_id
        return None

    def write(self, change_id: str, pr_number: int, last_commit: str | None) -> None:
        """Record the association on the change's current description.

        Existing trailers are replaced, never duplicated. No rewrite happens if
        the description would not change.
        """
        change = self._jj.get_change(self._repo_root, change_id)
        message = decode(change.description).with_association(
            self._config.pull_request_url(pr_number), last_commit
        )
        description = encode(message)
        if description == change.description:
            return
        logger.debug("Associating %s with #%d (last commit %s)", change_id, pr_number, last_commit)
        self._jj.describe(self._repo_root, change_id, description)
