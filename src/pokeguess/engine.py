"""
Round Engine - runs one "guess the Pokémon" round from start to finish.

Flow:
1. Validate the config (before any I/O)
2. Fetch the target and distinct decoys, shuffle them
3. Publish the concealed sprite with one option per choice
4. Consume selections until the round is won, lost or times out
5. Finalize the message exactly once
"""

import asyncio
import random
from contextlib import aclosing
from typing import Any, Optional

from pokeguess.config.logging import get_logger
from pokeguess.config.settings import settings
from pokeguess.errors import ConfigError, PresentationError, UpstreamError
from pokeguess.models.content import ChallengeContent, ChoiceOption
from pokeguess.models.records import PokemonRecord
from pokeguess.models.round import RoundConfig, RoundResult, RoundState, RoundStatus
from pokeguess.presenter import SelectionEvent, TriggerContext
from pokeguess.source import RecordSource

logger = get_logger("pokeguess.engine")

DEFAULT_TITLE = "Pokemon Game"
DEFAULT_DESCRIPTION = "Guess the Pokemon"

NOT_YOUR_GAME = "This game is not for you"
WRONG_GUESS = "Wrong!"
GAME_ENDED = "Game Ended"
TIMED_OUT = "Time's up! Game Ended"

# Refill rounds when the API hands back an id we already hold
MAX_FILL_ATTEMPTS = 3


class RoundHandle:
    """An in-flight round."""

    def __init__(self, state: RoundState, message: Any, task: "asyncio.Task[RoundResult]"):
        self.state = state
        self.message = message
        self._task = task

    @property
    def status(self) -> RoundStatus:
        return self.state.status

    def done(self) -> bool:
        return self._task.done()

    async def wait(self) -> RoundResult:
        """Wait for the round to resolve. Collection errors are re-raised here."""
        return await self._task

    def cancel(self) -> None:
        self._task.cancel()


class RoundEngine:
    """
    Orchestrates guessing rounds.

    The engine itself holds no round state; every round owns its RoundState,
    so concurrent rounds only share the (stateless) record source.
    """

    def __init__(
        self,
        source: RecordSource,
        rng: Optional[random.Random] = None,
        max_record_id: Optional[int] = None,
    ):
        """
        Args:
            source: Record/sprite client
            rng: Random generator (seed one for reproducible rounds)
            max_record_id: Upper bound of the id domain, inclusive
        """
        self.source = source
        self.rng = rng or random.Random()
        self.max_record_id = max_record_id or settings.max_record_id

    # =========================================================================
    # Candidates
    # =========================================================================

    def sample_ids(self, count: int) -> list[int]:
        """Independent uniform draws from [1, max_record_id]. May repeat."""
        return [self.rng.randint(1, self.max_record_id) for _ in range(count)]

    def _draw_distinct_ids(self, count: int, exclude: set[int]) -> list[int]:
        taken = set(exclude)
        free = self.max_record_id - sum(1 for i in taken if 1 <= i <= self.max_record_id)
        if count > free:
            raise ConfigError(
                f"Only {free} ids left in [1, {self.max_record_id}], need {count}",
                field="choice_count",
                value=count,
            )
        ids: list[int] = []
        while len(ids) < count:
            candidate = self.rng.randint(1, self.max_record_id)
            if candidate in taken:
                continue
            taken.add(candidate)
            ids.append(candidate)
        return ids

    async def _fetch_many(self, ids: list[int]) -> list[PokemonRecord]:
        # All-or-nothing: the first UpstreamError propagates
        return list(await asyncio.gather(*(self.source.fetch_record(i) for i in ids)))

    async def fetch_candidates(self, count: int) -> list[PokemonRecord]:
        """
        Fetch ``count`` random records concurrently.

        Raises:
            UpstreamError: if any single fetch fails
        """
        if count < 1:
            raise ValueError("count must be at least 1")
        return await self._fetch_many(self.sample_ids(count))

    def shuffle_choices(self, items: list[PokemonRecord]) -> list[PokemonRecord]:
        """Uniformly shuffled copy of ``items`` (Fisher-Yates)."""
        shuffled = list(items)
        self.rng.shuffle(shuffled)
        return shuffled

    async def build_choice_set(self, target: PokemonRecord, choice_count: int) -> list[PokemonRecord]:
        """
        Target plus ``choice_count - 1`` decoys, all with distinct ids, shuffled.

        Raises:
            UpstreamError: if a fetch fails or the API keeps returning ids
                we already hold
            ConfigError: if the id domain is too small for choice_count
        """
        chosen: dict[int, PokemonRecord] = {target.id: target}

        for _ in range(MAX_FILL_ATTEMPTS):
            needed = choice_count - len(chosen)
            if needed <= 0:
                break
            ids = self._draw_distinct_ids(needed, exclude=set(chosen))
            for record in await self._fetch_many(ids):
                if record.id in chosen:
                    logger.warning(f"Duplicate record {record.id} in choice set, refilling")
                    continue
                chosen[record.id] = record

        if len(chosen) < choice_count:
            raise UpstreamError(f"Could not assemble {choice_count} distinct choices")

        return self.shuffle_choices(list(chosen.values()))

    # =========================================================================
    # Round lifecycle
    # =========================================================================

    async def start_round(self, trigger: TriggerContext, config: Optional[RoundConfig] = None) -> RoundHandle:
        """
        Publish a new challenge and start collecting guesses.

        Nothing is published unless every fetch succeeds.

        Raises:
            ConfigError: before any network activity, on an invalid config
            UpstreamError: if a record or sprite fetch fails
            PresentationError: if the surface rejects the challenge
        """
        config = config or RoundConfig()
        config.validate_bounds(self.max_record_id)

        target_id = config.target_id or self.sample_ids(1)[0]
        log_extra = {"user_id": trigger.player_id, "channel_id": trigger.channel_id}
        logger.info(
            f"Starting round: target={target_id} choices={config.choice_count} "
            f"allowed_wrong={config.allowed_wrong_guesses} timeout={config.timeout}s",
            extra=log_extra,
        )

        target = await self.source.fetch_record(target_id)
        choices = await self.build_choice_set(target, config.choice_count)
        question_image = await self.source.fetch_sprite(target.id, revealed=False)

        content = ChallengeContent(
            title=config.title or DEFAULT_TITLE,
            description=config.description or DEFAULT_DESCRIPTION,
            image=question_image,
            options=[
                ChoiceOption(id=str(record.id), label=record.display_name(config.label_language))
                for record in choices
            ],
        )
        message = await trigger.surface.publish(content)

        state = RoundState.start(target, config.allowed_wrong_guesses)
        task = asyncio.create_task(self._collect(trigger, config, state, message, content))
        return RoundHandle(state, message, task)

    async def play(self, trigger: TriggerContext, config: Optional[RoundConfig] = None) -> RoundResult:
        """Start a round and wait for its result."""
        handle = await self.start_round(trigger, config)
        return await handle.wait()

    async def _collect(
        self,
        trigger: TriggerContext,
        config: RoundConfig,
        state: RoundState,
        message: Any,
        content: ChallengeContent,
    ) -> RoundResult:
        surface = trigger.surface
        try:
            async with asyncio.timeout(config.timeout):
                async with aclosing(surface.selections(message, config.timeout)) as events:
                    async for event in events:
                        await self._handle_selection(trigger, config, state, event)
                        if state.resolved:
                            break
        except TimeoutError:
            pass

        # Stream ended or the window closed without a decision
        state.resolve(RoundStatus.TIMED_OUT)

        await self._finalize(trigger, config, state, message, content)

        logger.info(
            f"Round over: {state.status.value} (target={state.target.id}, "
            f"wrong={len(state.wrong_guesses)})",
            extra={"user_id": trigger.player_id, "channel_id": trigger.channel_id},
        )
        return RoundResult(
            status=state.status,
            target=state.target,
            wrong_guesses=list(state.wrong_guesses),
            remaining_guesses=state.remaining_guesses,
        )

    async def _handle_selection(
        self,
        trigger: TriggerContext,
        config: RoundConfig,
        state: RoundState,
        event: SelectionEvent,
    ) -> None:
        if event.user_id != trigger.player_id:
            logger.debug(f"Ignoring selection from {event.user_id}, not the player")
            await self._reply(event, NOT_YOUR_GAME, private=True)
            return

        if event.option_id == str(state.target.id):
            state.resolve(RoundStatus.WON)
            name = state.target.display_name(config.label_language)
            await self._reply(event, f"Correct! It was **{name}**.")
            return

        state.remaining_guesses -= 1
        state.wrong_guesses.append(event.option_id)
        logger.info(f"Wrong guess {event.option_id}, {state.remaining_guesses} left")
        if state.remaining_guesses <= 0:
            state.resolve(RoundStatus.LOST)
        await self._reply(event, WRONG_GUESS)

    async def _reply(self, event: SelectionEvent, text: str, private: bool = False) -> None:
        # A lost reply (e.g. an expired interaction) must not abandon the round
        try:
            await event.respond(text, private=private)
        except PresentationError as e:
            logger.warning(f"Could not reply to {event.user_id}: {e}")

    async def _finalize(
        self,
        trigger: TriggerContext,
        config: RoundConfig,
        state: RoundState,
        message: Any,
        content: ChallengeContent,
    ) -> None:
        """Clear the options; reveal the answer only on a win."""
        if state.status is RoundStatus.WON:
            name = state.target.display_name(config.label_language)
            try:
                answer_image = await self.source.fetch_sprite(state.target.id, revealed=True)
            except UpstreamError as e:
                logger.warning(f"Could not fetch answer sprite: {e}")
                answer_image = None
            final = content.model_copy(update={"image": answer_image, "options": [], "footer": f"It was {name}!"})
        elif state.status is RoundStatus.LOST:
            final = content.model_copy(update={"image": None, "options": [], "footer": GAME_ENDED})
        else:
            final = content.model_copy(update={"image": None, "options": [], "footer": TIMED_OUT})

        await trigger.surface.update(message, final)
