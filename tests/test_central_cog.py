"""
Unit Tests for CentralCog

Tests for:
- The central channel message path (reactions, deletions, spam drops)
- /setup-central and /disable-central
- One-time panel reset on ready and the limiter sweep job
"""

import logging
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest
import pytest_asyncio
from discord.ext import commands

from lavalink_music_bot.application.services.spam_limiter import SpamLimiter
from lavalink_music_bot.domain.music.value_objects import SessionOrigin
from lavalink_music_bot.domain.shared.exceptions import ConfigStoreUnavailable, EngineUnavailable, SinkRenderFailure
from lavalink_music_bot.domain.shared.messages import DiscordUIMessages, ErrorMessages
from lavalink_music_bot.infrastructure.discord.cogs.central_cog import (
    FAILURE_REACTION,
    SUCCESS_REACTION,
    CentralCog,
    setup,
)

GUILD_ID = 1000
VOICE_ID = 2000
CENTRAL_TEXT_ID = 3500
OTHER_TEXT_ID = 3000

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def bot():
    bot = MagicMock()
    bot.wait_until_ready = AsyncMock()
    return bot


@pytest.fixture
def cog(bot, container):
    return CentralCog(bot, container)


@pytest_asyncio.fixture
async def central(config_repository):
    await config_repository.upsert(
        GUILD_ID,
        {"centralSetup": {"enabled": True, "channelId": CENTRAL_TEXT_ID, "embedId": 9001, "vcChannelId": VOICE_ID}},
    )


@pytest.fixture
def songs(audio_node, make_track):
    for name in ("song a", "song b", "song c", "song d"):
        audio_node.add_result(name, make_track(name.replace(" ", "-"), title=name.title()))


@pytest.fixture
def make_message(make_member):
    def factory(content: str = "song a", *, member=None, channel_id: int = CENTRAL_TEXT_ID) -> MagicMock:
        author = member or make_member()
        message = MagicMock(spec=discord.Message)
        message.author = author
        message.guild = author.guild
        message.channel = MagicMock()
        message.channel.id = channel_id
        message.content = content
        message.add_reaction = AsyncMock()
        message.delete = AsyncMock()
        message.reply = AsyncMock(return_value=MagicMock(delete=AsyncMock()))
        return message

    return factory


def reactions(message) -> list[str]:
    return [call.args[0] for call in message.add_reaction.await_args_list]


# =============================================================================
# Request path
# =============================================================================


class TestCentralMessages:
    @pytest.mark.asyncio
    async def test_song_plays_and_is_acknowledged(self, cog, central, songs, make_message, container):
        message = make_message("song a")

        await cog.on_message(message)

        assert reactions(message) == [SUCCESS_REACTION]
        message.delete.assert_awaited_once_with(delay=container.settings.central.feedback_delete_after_s)
        session = container.playback_engine.get_session(GUILD_ID)
        assert session.origin is SessionOrigin.CENTRAL
        assert session.current.title == "Song A"

    @pytest.mark.asyncio
    async def test_chatter_is_deleted(self, cog, central, make_message):
        message = make_message("hi")

        await cog.on_message(message)

        message.delete.assert_awaited_once_with(delay=None)
        message.add_reaction.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_chatter_kept_when_deletion_disabled(self, cog, central, config_repository, make_message):
        await config_repository.upsert(GUILD_ID, {"centralSetup.deleteMessages": False})
        message = make_message("hi")

        await cog.on_message(message)

        message.delete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_fourth_message_is_dropped(self, cog, central, songs, make_message, container):
        messages = [make_message(f"song {c}") for c in "abcd"]

        for message in messages:
            await cog.on_message(message)

        assert [reactions(m) for m in messages[:3]] == [[SUCCESS_REACTION]] * 3
        assert reactions(messages[3]) == []
        messages[3].delete.assert_awaited_once_with(delay=None)
        assert container.playback_engine.get_session(GUILD_ID).queue_length == 2

    @pytest.mark.asyncio
    async def test_denial_is_explained(self, cog, central, songs, make_member, make_message):
        message = make_message("song a", member=make_member(voice_channel_id=2999))

        await cog.on_message(message)

        assert reactions(message) == [FAILURE_REACTION]
        message.reply.assert_awaited_once_with(
            DiscordUIMessages.POLICY_MUST_USE_CENTRAL_VC.format(channel_id=VOICE_ID), mention_author=False
        )

    @pytest.mark.asyncio
    async def test_missing_central_role_is_deleted_silently(
        self, cog, central, songs, config_repository, make_message
    ):
        await config_repository.upsert(GUILD_ID, {"centralSetup.allowedRoles": [4242]})
        message = make_message("song a")

        await cog.on_message(message)

        message.delete.assert_awaited_once_with(delay=None)
        message.add_reaction.assert_not_awaited()
        message.reply.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_not_found(self, cog, central, make_message):
        message = make_message("unknown song")

        await cog.on_message(message)

        assert reactions(message) == [FAILURE_REACTION]
        assert message.reply.await_args.args[0] == DiscordUIMessages.PLAY_NOT_FOUND

    @pytest.mark.asyncio
    async def test_offline_engine(self, cog, central, audio_node, make_message, caplog):
        audio_node.available = False
        message = make_message("song a")

        with caplog.at_level(logging.WARNING):
            await cog.on_message(message)

        assert reactions(message) == [FAILURE_REACTION]
        assert message.reply.await_args.args[0] == EngineUnavailable().message

    @pytest.mark.asyncio
    async def test_feedback_failures_are_tolerated(self, cog, central, make_message):
        message = make_message("unknown song")
        forbidden = discord.Forbidden(MagicMock(status=403), "Missing Permissions")
        message.add_reaction.side_effect = forbidden
        message.reply.side_effect = forbidden
        message.delete.side_effect = forbidden

        await cog.on_message(message)

        message.delete.assert_awaited_once()

    @pytest.mark.parametrize(
        "content",
        ["!play song a", "?skip"],
    )
    @pytest.mark.asyncio
    async def test_commands_are_left_alone(self, cog, central, config_repository, make_message, content):
        await config_repository.upsert(GUILD_ID, {"settings.prefix": "?"})
        message = make_message(content)

        await cog.on_message(message)

        message.delete.assert_not_awaited()
        message.add_reaction.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_other_channels_ignored(self, cog, central, make_message):
        message = make_message("song a", channel_id=OTHER_TEXT_ID)

        await cog.on_message(message)

        message.delete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_bots_ignored(self, cog, central, make_member, make_message):
        message = make_message("song a", member=make_member(bot=True))

        await cog.on_message(message)

        message.delete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_without_central_setup(self, cog, make_message):
        message = make_message("song a")

        await cog.on_message(message)

        message.delete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_config_store_failure(self, cog, container, make_message, caplog):
        container._config_repository = MagicMock()
        container._config_repository.find_by_guild_id = AsyncMock(side_effect=ConfigStoreUnavailable("find"))
        message = make_message("song a")

        with caplog.at_level(logging.ERROR):
            await cog.on_message(message)

        message.delete.assert_not_awaited()
        assert caplog.records


# =============================================================================
# Setup commands
# =============================================================================


class TestSetupCommands:
    @pytest.fixture
    def text_channel(self):
        channel = MagicMock(spec=discord.TextChannel)
        channel.id = CENTRAL_TEXT_ID
        channel.mention = f"<#{CENTRAL_TEXT_ID}>"
        channel.guild = MagicMock()
        channel.permissions_for.return_value = discord.Permissions(
            send_messages=True, embed_links=True, manage_messages=True
        )
        channel.send = AsyncMock()
        return channel

    @pytest.mark.asyncio
    async def test_setup(self, cog, make_ctx, make_member, text_channel, panel_sink, config_repository, container):
        ctx = make_ctx(make_member())
        voice = MagicMock(id=VOICE_ID)

        await cog.setup_central.callback(cog, ctx, text_channel, voice, None)

        assert ctx.send.await_args.args[0] == DiscordUIMessages.CENTRAL_SETUP_DONE.format(
            channel=f"<#{CENTRAL_TEXT_ID}>"
        )
        assert panel_sink.published == [CENTRAL_TEXT_ID]
        text_channel.send.assert_awaited_once_with(
            DiscordUIMessages.CENTRAL_USAGE, delete_after=container.settings.central.usage_delete_after_s
        )
        central = (await config_repository.find_by_guild_id(GUILD_ID)).central_setup
        assert central.vc_channel_id == VOICE_ID

    @pytest.mark.asyncio
    async def test_setup_defaults_to_current_channel(self, cog, make_ctx, make_member, text_channel, panel_sink):
        ctx = make_ctx(make_member())
        ctx.channel = text_channel

        await cog.setup_central.callback(cog, ctx, None, None, None)

        assert panel_sink.published == [CENTRAL_TEXT_ID]

    @pytest.mark.asyncio
    async def test_setup_needs_text_channel(self, cog, make_ctx, make_member):
        ctx = make_ctx(make_member())

        with pytest.raises(commands.BadArgument):
            await cog.setup_central.callback(cog, ctx, None, None, None)

    @pytest.mark.asyncio
    async def test_setup_missing_permissions(self, cog, make_ctx, make_member, text_channel, panel_sink):
        text_channel.permissions_for.return_value = discord.Permissions(send_messages=True)
        ctx = make_ctx(make_member())

        await cog.setup_central.callback(cog, ctx, text_channel, None, None)

        assert ctx.send.await_args.args[0] == DiscordUIMessages.CENTRAL_MISSING_PERMISSIONS.format(
            channel=text_channel.mention
        )
        assert panel_sink.published == []

    @pytest.mark.asyncio
    async def test_already_enabled_sends_no_usage(self, cog, central, make_ctx, make_member, text_channel):
        ctx = make_ctx(make_member())

        await cog.setup_central.callback(cog, ctx, text_channel, None, None)

        assert ctx.send.await_args.args[0] == DiscordUIMessages.CENTRAL_ALREADY_ENABLED.format(
            channel_id=CENTRAL_TEXT_ID
        )
        text_channel.send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_disable(self, cog, central, make_ctx, make_member, panel_sink):
        ctx = make_ctx(make_member())

        await cog.disable_central.callback(cog, ctx)

        assert ctx.send.await_args.args[0] == DiscordUIMessages.CENTRAL_DISABLED
        assert panel_sink.removed == [(CENTRAL_TEXT_ID, 9001)]


class TestCogCommandError:
    @pytest.mark.parametrize(
        ("error", "expected"),
        [
            (commands.MissingPermissions(["manage_guild"]), DiscordUIMessages.ERROR_REQUIRES_MANAGE_GUILD),
            (commands.NoPrivateMessage(), DiscordUIMessages.ERROR_SERVER_ONLY),
            (commands.BadArgument("channel"), DiscordUIMessages.ERROR_INVALID_ARGUMENT),
            (
                commands.CommandInvokeError(SinkRenderFailure("central-panel", "Missing Access")),
                DiscordUIMessages.CENTRAL_SETUP_FAILED,
            ),
            (commands.CommandInvokeError(KeyError("x")), DiscordUIMessages.ERROR_GENERIC),
        ],
    )
    @pytest.mark.asyncio
    async def test_replies(self, cog, make_ctx, make_member, error, expected):
        ctx = make_ctx(make_member())

        await cog.cog_command_error(ctx, error)

        ctx.send.assert_awaited_once_with(expected, ephemeral=True)


# =============================================================================
# Upkeep
# =============================================================================


class TestUpkeep:
    @pytest.mark.asyncio
    async def test_reset_runs_once(self, cog, container):
        container._central_panel_service = MagicMock()
        container._central_panel_service.reset_on_startup = AsyncMock()

        await cog.on_ready()
        await cog.on_ready()

        container._central_panel_service.reset_on_startup.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_reset_store_failure_logged(self, cog, container, caplog):
        container._central_panel_service = MagicMock()
        container._central_panel_service.reset_on_startup = AsyncMock(side_effect=ConfigStoreUnavailable("find"))

        with caplog.at_level(logging.ERROR):
            await cog.on_ready()

        assert caplog.records

    @pytest.mark.asyncio
    async def test_sweep_evicts_idle_users(self, cog, container):
        now = [0.0]
        container._spam_limiter = SpamLimiter(clock=lambda: now[0])
        container.spam_limiter.allow(GUILD_ID, 111)
        now[0] = 60.0

        await cog.sweep_limiter()

        assert len(container.spam_limiter) == 0

    @pytest.mark.asyncio
    async def test_sweep_job_lifecycle(self, cog):
        await cog.cog_load()
        assert cog.sweep_limiter.is_running()

        await cog.cog_unload()
        assert not cog.sweep_limiter.is_running() or cog.sweep_limiter.is_being_cancelled()


class TestSetup:
    @pytest.mark.asyncio
    async def test_adds_cog(self, container):
        bot = MagicMock()
        bot.container = container
        bot.add_cog = AsyncMock()

        await setup(bot)

        assert isinstance(bot.add_cog.await_args.args[0], CentralCog)

    @pytest.mark.asyncio
    async def test_requires_container(self):
        with pytest.raises(RuntimeError, match=ErrorMessages.CONTAINER_NOT_FOUND):
            await setup(MagicMock(spec=commands.Bot))
