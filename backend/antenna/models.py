from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class Update:
    """One transmission from the terminal update board.

    ``body`` is the identity of an update; ``title`` (the timestamp column)
    is descriptive only.
    """

    title: str
    body: str

    def __str__(self) -> str:
        return f"{self.title}: {self.body}"


@dataclass
class WalkResult:
    """Outcome of the sequential delivery walk.

    ``failed`` is set when the walk stopped early; everything after it was
    left untouched for the next run.
    """

    sent: List[Update] = field(default_factory=list)
    failed: Optional[Update] = None
    error: Optional[Exception] = None

    @property
    def halted(self) -> bool:
        return self.failed is not None
