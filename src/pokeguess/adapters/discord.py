"""
Discord Adapter - plays guessing rounds in Discord channels.

DiscordPresenter renders content descriptors as an embed with the sprite
attached and one button per option. PokeGuessBot starts a round on the
trigger message or the /gtp slash command.
"""

import asyncio
import io
from typing import AsyncIterator, Optional, Union

import discord
from discord.ext import commands

from pokeguess.config.logging import get_logger
from pokeguess.config.settings import settings
from pokeguess.engine import RoundEngine
from pokeguess.errors import PokeGuessError, PresentationError
from pokeguess.models.content import ChallengeContent, ChoiceOption
from pokeguess.models.round import MAX_CHOICES, MIN_CHOICES, RoundConfig
from pokeguess.presenter import Presenter, SelectionEvent, TriggerContext
from pokeguess.source import RecordSource

logger = get_logger("pokeguess.discord")

EMBED_COLOR = 0xE3350D


class DiscordSelection(SelectionEvent):
    """A button press, wrapping the Discord interaction."""

    def __init__(self, interaction: discord.Interaction, option_id: str):
        self.interaction = interaction
        self.user_id = str(interaction.user.id)
        self.option_id = option_id

    async def respond(self, text: str, private: bool = False) -> None:
        try:
            if self.interaction.response.is_done():
                await self.interaction.followup.send(text, ephemeral=private)
            else:
                await self.interaction.response.send_message(text, ephemeral=private)
        except discord.HTTPException as e:
            raise PresentationError(f"Could not reply to selection: {e}") from e


class ChoiceButton(discord.ui.Button):
    """One guess option. The custom_id is the record id."""

    def __init__(self, option: ChoiceOption):
        super().__init__(
            label=option.label,
            style=discord.ButtonStyle.primary,
            custom_id=option.id,
        )

    async def callback(self, interaction: discord.Interaction) -> None:
        view = self.view
        if not isinstance(view, GuessView):
            return
        await view.pending.put(DiscordSelection(interaction, self.custom_id))


class GuessView(discord.ui.View):
    """
    Button row for a challenge.

    Presses are queued in arrival order; the presenter drains the queue.
    The view has no timeout of its own, the round's window bounds it.
    """

    def __init__(self, options: list[ChoiceOption]):
        super().__init__(timeout=None)
        self.pending: asyncio.Queue[DiscordSelection] = asyncio.Queue()
        for option in options:
            self.add_item(ChoiceButton(option))


class DiscordPresenter(Presenter):
    """
    Presenter bound to the message or interaction that triggered a round.

    A text trigger is answered with a reply. A slash-command interaction is
    deferred (if it isn't already) and its original response is edited.
    """

    def __init__(self, origin: Union[discord.Message, discord.Interaction]):
        self.origin = origin
        self._view: Optional[GuessView] = None
        self._image_filename: Optional[str] = None

    def _render(self, content: ChallengeContent) -> tuple[discord.Embed, Optional[discord.File]]:
        embed = discord.Embed(title=content.title, description=content.description, color=EMBED_COLOR)

        file = None
        if content.image:
            file = discord.File(io.BytesIO(content.image.data), filename=content.image.filename)
            self._image_filename = content.image.filename
        if self._image_filename:
            embed.set_image(url=f"attachment://{self._image_filename}")

        if content.footer:
            embed.set_footer(text=content.footer)
        return embed, file

    async def publish(self, content: ChallengeContent) -> discord.Message:
        embed, file = self._render(content)
        self._view = GuessView(content.options)

        kwargs = {"embed": embed, "view": self._view}
        if file:
            kwargs["file"] = file

        try:
            if isinstance(self.origin, discord.Interaction):
                if not self.origin.response.is_done():
                    await self.origin.response.defer()
                message = await self.origin.edit_original_response(**kwargs)
            else:
                message = await self.origin.reply(**kwargs)
        except discord.HTTPException as e:
            self._view.stop()
            raise PresentationError(f"Could not publish challenge: {e}") from e

        logger.debug(f"Published challenge message {message.id}")
        return message

    async def selections(self, message: discord.Message, timeout: float) -> AsyncIterator[SelectionEvent]:
        view = self._view
        if view is None:
            return

        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        try:
            while True:
                remaining = deadline - loop.time()
                if remaining <= 0:
                    return
                try:
                    event = await asyncio.wait_for(view.pending.get(), remaining)
                except asyncio.TimeoutError:
                    return
                yield event
        finally:
            view.stop()

    async def update(self, message: discord.Message, content: ChallengeContent) -> None:
        embed, file = self._render(content)

        kwargs = {"embed": embed}
        if content.options:
            self._view = GuessView(content.options)
            kwargs["view"] = self._view
        else:
            kwargs["view"] = None
        if file:
            kwargs["file"] = file
            kwargs["attachments"] = []  # Drop the previous sprite

        try:
            await message.edit(**kwargs)
        except discord.HTTPException as e:
            raise PresentationError(f"Could not update challenge: {e}") from e


class PokeGuessBot(commands.Bot):
    """Discord bot that runs guessing rounds."""

    def __init__(self, engine: RoundEngine, trigger: Optional[str] = None):
        intents = discord.Intents.default()
        intents.message_content = True

        super().__init__(
            command_prefix="!",  # Not really used
            intents=intents,
        )

        self.engine = engine
        self.trigger = trigger or settings.command_trigger

        @self.slash_command(name="gtp", description="Guess the Pokémon")
        async def gtp(
            ctx: discord.ApplicationContext,
            choices: discord.Option(
                int,
                "Number of buttons",
                min_value=MIN_CHOICES,
                max_value=MAX_CHOICES,
                default=settings.default_choice_count,
            ),
            wrong_guesses: discord.Option(
                int,
                "Wrong guesses allowed",
                min_value=0,
                max_value=MAX_CHOICES - 1,
                default=settings.default_allowed_wrong_guesses,
            ),
        ):
            await self.on_gtp_command(ctx.interaction, choices, wrong_guesses)

    async def on_ready(self):
        logger.info(f"Logged in as {self.user}")

    def default_config(self, **overrides) -> RoundConfig:
        values = {
            "choice_count": settings.default_choice_count,
            "allowed_wrong_guesses": settings.default_allowed_wrong_guesses,
            "timeout": settings.default_timeout,
            "label_language": settings.default_label_language,
        }
        values.update(overrides)
        return RoundConfig(**values)

    async def on_message(self, message: discord.Message):
        """Start a round when someone sends the trigger."""
        if message.author.bot:
            return
        if message.content.strip() != self.trigger:
            return

        trigger = TriggerContext(
            player_id=str(message.author.id),
            surface=DiscordPresenter(message),
            channel_id=str(message.channel.id),
        )
        started = await self.run_round(trigger, self.default_config())
        if not started:
            try:
                await message.reply("Could not start the game.")
            except discord.HTTPException as e:
                logger.warning(f"Could not report failed start: {e}")

    async def on_gtp_command(self, interaction: discord.Interaction, choices: int, wrong_guesses: int):
        """Start a round from the slash command."""
        # Fetching the round takes longer than Discord's 3s acknowledgement window
        await interaction.response.defer()

        trigger = TriggerContext(
            player_id=str(interaction.user.id),
            surface=DiscordPresenter(interaction),
            channel_id=str(interaction.channel_id),
        )
        try:
            config = self.default_config(choice_count=choices, allowed_wrong_guesses=wrong_guesses)
        except ValueError as e:
            await interaction.followup.send(f"Invalid options: {e}", ephemeral=True)
            return

        started = await self.run_round(trigger, config)
        if not started:
            await interaction.followup.send("Could not start the game.", ephemeral=True)

    async def run_round(self, trigger: TriggerContext, config: RoundConfig) -> bool:
        """Run one round to completion. Returns False if it never started."""
        try:
            handle = await self.engine.start_round(trigger, config)
        except PokeGuessError as e:
            logger.exception(f"Could not start round: {e}")
            return False

        try:
            result = await handle.wait()
        except PokeGuessError as e:
            logger.exception(f"Round failed: {e}")
            return True

        logger.info(f"Round for {trigger.player_id} ended: {result.status.value}")
        return True


async def run_bot():
    """Run the Discord bot."""
    if not settings.discord_bot_token:
        raise RuntimeError("DISCORD_BOT_TOKEN is not set")

    async with RecordSource() as source:
        bot = PokeGuessBot(RoundEngine(source))
        await bot.start(settings.discord_bot_token)
