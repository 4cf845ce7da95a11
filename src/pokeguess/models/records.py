"""
Record models for creatures served by the remote API.

Only ``id`` and ``name`` drive the game; the rest is carried along
for display purposes.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class LocalizedName(BaseModel):
    """A display name in one locale."""

    name: str
    language: str


class Variety(BaseModel):
    """An alternate form of a creature."""

    id: str
    name: Optional[str] = None
    default: bool = False
    display: Optional[str] = None
    types: list[Any] = Field(default_factory=list)


class EvolutionChain(BaseModel):
    """Evolution chain reference."""

    url: str = ""
    data: list[Any] = Field(default_factory=list)


class PokemonRecord(BaseModel):
    """
    A creature fetched from the API.

    Immutable once fetched. Unknown keys in the API payload are ignored.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    id: int = Field(..., gt=0)
    name: str
    names: list[LocalizedName] = Field(default_factory=list)
    genus: Optional[str] = None
    entries: list[str] = Field(default_factory=list)
    varieties: list[Variety] = Field(default_factory=list)
    chain: Optional[EvolutionChain] = None
    types_cached: bool = Field(default=False, alias="typesCached")
    missingno: bool = False
    store: dict[str, Any] = Field(default_factory=dict)

    def display_name(self, language: Optional[str] = None) -> str:
        """Return the name in ``language`` if the API provided one."""
        if language:
            for localized in self.names:
                if localized.language == language:
                    return localized.name
        return self.name
