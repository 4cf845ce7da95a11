"""
Content descriptors handed to a Presenter.

These are plain values, independent of any chat SDK's builder objects.
"""

from typing import Optional

from pydantic import BaseModel, Field

SPRITE_FILENAME = "pokeguess.png"


class SpriteImage(BaseModel):
    """A pre-rendered sprite downloaded from the API."""

    filename: str = SPRITE_FILENAME
    data: bytes
    source_url: Optional[str] = None


class ChoiceOption(BaseModel):
    """One selectable option (a button)."""

    id: str
    label: str


class ChallengeContent(BaseModel):
    """
    What a message should show.

    Empty ``options`` clears the buttons. On an update, ``image=None`` keeps
    the image already attached to the message.
    """

    title: str
    description: str
    image: Optional[SpriteImage] = None
    options: list[ChoiceOption] = Field(default_factory=list)
    footer: Optional[str] = None
