"""
Round models: caller configuration, per-round state and the final result.

RoundState is owned by a single running round and lives only as long
as that round does.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from pokeguess.errors import ConfigError
from pokeguess.models.records import PokemonRecord

MIN_CHOICES = 1
MAX_CHOICES = 4


class RoundStatus(str, Enum):
    """Lifecycle of a round. Everything except ACTIVE is terminal."""

    ACTIVE = "active"
    WON = "won"
    LOST = "lost"
    TIMED_OUT = "timed_out"


class RoundConfig(BaseModel):
    """Caller-supplied parameters for one round."""

    target_id: Optional[int] = None  # Random when unset
    choice_count: int = 4
    allowed_wrong_guesses: int = 0
    timeout: float = 60.0  # Seconds

    # Presentation override
    title: Optional[str] = None
    description: Optional[str] = None
    label_language: Optional[str] = None

    def validate_bounds(self, max_record_id: Optional[int] = None) -> None:
        """
        Check the round invariants.

        Raises:
            ConfigError: if any parameter is out of range
        """
        if not MIN_CHOICES <= self.choice_count <= MAX_CHOICES:
            raise ConfigError(
                f"choice_count must be between {MIN_CHOICES} and {MAX_CHOICES}",
                field="choice_count",
                value=self.choice_count,
            )

        if max_record_id is not None and self.choice_count > max_record_id:
            raise ConfigError(
                f"choice_count cannot exceed the {max_record_id} available records",
                field="choice_count",
                value=self.choice_count,
            )

        max_wrong = self.choice_count - 1
        if not 0 <= self.allowed_wrong_guesses <= max_wrong:
            raise ConfigError(
                f"allowed_wrong_guesses must be between 0 and {max_wrong}",
                field="allowed_wrong_guesses",
                value=self.allowed_wrong_guesses,
            )

        if self.timeout <= 0:
            raise ConfigError("timeout must be greater than 0", field="timeout", value=self.timeout)

        if self.target_id is not None:
            upper = max_record_id if max_record_id is not None else self.target_id
            if not 1 <= self.target_id <= upper:
                raise ConfigError(
                    f"target_id must be between 1 and {upper}",
                    field="target_id",
                    value=self.target_id,
                )


@dataclass
class RoundState:
    """Mutable state of an in-flight round."""

    target: PokemonRecord
    remaining_guesses: int
    status: RoundStatus = RoundStatus.ACTIVE
    wrong_guesses: list[str] = field(default_factory=list)

    @classmethod
    def start(cls, target: PokemonRecord, allowed_wrong_guesses: int) -> "RoundState":
        # The guess that exceeds the allowance ends the round
        return cls(target=target, remaining_guesses=allowed_wrong_guesses + 1)

    @property
    def resolved(self) -> bool:
        return self.status is not RoundStatus.ACTIVE

    def resolve(self, status: RoundStatus) -> bool:
        """Apply a terminal transition. Returns False if already resolved."""
        if status is RoundStatus.ACTIVE:
            raise ValueError("cannot resolve a round to ACTIVE")
        if self.resolved:
            return False
        self.status = status
        return True


class RoundResult(BaseModel):
    """Outcome of a finished round."""

    status: RoundStatus
    target: PokemonRecord
    wrong_guesses: list[str] = Field(default_factory=list)
    remaining_guesses: int = 0

    @property
    def won(self) -> bool:
        return self.status is RoundStatus.WON
