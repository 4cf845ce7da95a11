"""
Presenter - the chat surface a round is published to.

The engine never touches a chat SDK directly. It hands content
descriptors to a Presenter and pulls SelectionEvents from it.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, AsyncIterator, Optional

from pokeguess.models.content import ChallengeContent


class SelectionEvent(ABC):
    """A user pressing one of the published options."""

    user_id: str
    option_id: str

    @abstractmethod
    async def respond(self, text: str, private: bool = False) -> None:
        """
        Reply to the selection.

        Args:
            text: Message to show
            private: Only the selecting user sees it
        """
        pass


class Presenter(ABC):
    """Publishes challenges and reports selections back."""

    @abstractmethod
    async def publish(self, content: ChallengeContent) -> Any:
        """
        Publish the challenge and return a handle to the message.

        Raises:
            PresentationError: if the surface rejects the message
        """
        pass

    @abstractmethod
    def selections(self, message: Any, timeout: float) -> AsyncIterator[SelectionEvent]:
        """
        Stream selections made on ``message``, in arrival order.

        The stream is finite: it ends once ``timeout`` seconds have passed
        or when the consumer closes it.
        """
        pass

    @abstractmethod
    async def update(self, message: Any, content: ChallengeContent) -> None:
        """
        Replace the message content.

        Raises:
            PresentationError: if the surface rejects the edit
        """
        pass


@dataclass
class TriggerContext:
    """Who started the round and where it is shown."""

    player_id: str
    surface: Presenter
    channel_id: Optional[str] = None
