"""Search data models."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Posting:
    """A posting records how often a token occurs in one package document."""

    package: str
    frequency: int = 1

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {"package": self.package, "frequency": self.frequency}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Posting":
        """Create from dictionary."""
        return cls(package=data["package"], frequency=data.get("frequency", 1))


PostingList = tuple[Posting, ...]
