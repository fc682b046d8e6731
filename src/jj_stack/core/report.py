"""Per-element outcomes collected while an engine runs."""

from dataclasses import dataclass, field
from typing import Literal

OutcomeKind = Literal[
    "created",
    "updated",
    "unchanged",
    "discarded",
    "closed",
    "rebased",
    "fetched",
    "conflicted",
    "adopted",
    "skipped",
    "failed",
]

_ICONS: dict[OutcomeKind, str] = {
    "created": "✨",
    "updated": "✅",
    "unchanged": "✅",
    "discarded": "🛬",
    "closed": "🗑",
    "rebased": "🔀",
    "fetched": "📥",
    "conflicted": "⚠️",
    "adopted": "📦",
    "skipped": "⏭",
    "failed": "❌",
}


@dataclass(frozen=True)
class ElementOutcome:
    """What happened to one stack element."""

    change_id: str | None
    kind: OutcomeKind
    title: str = ""
    pr_number: int | None = None
    message: str = ""
    error: Exception | None = None

    def render(self) -> str:
        subject = self.title or (self.change_id or "")
        if self.pr_number is not None:
            subject = f"#{self.pr_number} {subject}"
        line = f"{_ICONS[self.kind]} {self.kind}: {subject}"
        if self.message:
            line += f" ({self.message})"
        return line


@dataclass
class StackReport:
    """Ordered outcomes of one engine invocation."""

    outcomes: list[ElementOutcome] = field(default_factory=list)

    def add(self, outcome: ElementOutcome) -> ElementOutcome:
        self.outcomes.append(outcome)
        return outcome

    def extend(self, other: "StackReport") -> None:
        self.outcomes.extend(other.outcomes)

    @property
    def failures(self) -> list[ElementOutcome]:
        return [o for o in self.outcomes if o.kind == "failed"]

    @property
    def succeeded(self) -> bool:
        return not self.failures

    def of_kind(self, kind: OutcomeKind) -> list[ElementOutcome]:
        return [o for o in self.outcomes if o.kind == kind]

    def render_lines(self) -> list[str]:
        return [outcome.render() for outcome in self.outcomes]
