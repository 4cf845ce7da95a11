"""
Pydantic models for the guessing game's data structures.
"""

from pokeguess.models.content import SPRITE_FILENAME, ChallengeContent, ChoiceOption, SpriteImage
from pokeguess.models.records import EvolutionChain, LocalizedName, PokemonRecord, Variety
from pokeguess.models.round import (
    MAX_CHOICES,
    MIN_CHOICES,
    RoundConfig,
    RoundResult,
    RoundState,
    RoundStatus,
)

__all__ = [
    "PokemonRecord",
    "LocalizedName",
    "Variety",
    "EvolutionChain",
    "RoundConfig",
    "RoundState",
    "RoundStatus",
    "RoundResult",
    "MIN_CHOICES",
    "MAX_CHOICES",
    "ChallengeContent",
    "ChoiceOption",
    "SpriteImage",
    "SPRITE_FILENAME",
]
