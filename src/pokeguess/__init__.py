"""
pokeguess v0.1.0 - "Guess the Pokémon" rounds for Discord bots.

One round: fetch a target and decoys, publish the concealed sprite with
a button per choice, and resolve on the player's presses.
"""

from pokeguess.engine import RoundEngine, RoundHandle
from pokeguess.source import RecordSource

__version__ = "0.1.0"
__all__ = ["RoundEngine", "RoundHandle", "RecordSource"]
