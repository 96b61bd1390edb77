"""Centralized message constants for error messages, log templates, and user feedback."""

from __future__ import annotations


class ErrorMessages:
    """Error messages for exceptions and validation failures."""

    # Discord ID Validation Errors
    INVALID_SNOWFLAKE = "Discord snowflake ID must be positive"
    SNOWFLAKE_TOO_LARGE = "Discord snowflake ID exceeds maximum value (2^64)"

    # Settings Validation Errors
    INVALID_DATABASE_URL = "Database URL must start with sqlite://"
    INVALID_LAVALINK_URI = "Lavalink URI must start with http://, https://, ws:// or wss://"
    INVALID_LOG_LEVEL = "Invalid log level: {level}. Must be one of {valid_levels}"

    # Engine / Store Errors
    NO_PLAYER_FOR_GUILD = "No player connected in guild {guild_id}"
    CHANNEL_NOT_VOICE = "Channel {channel_id} is not a voice channel"
    GUILD_UNAVAILABLE = "Guild {guild_id} is not available"
    NO_CONNECTED_NODE = "No connected Lavalink node"
    RESOLVE_TIMEOUT = "Resolver timed out after {seconds}s"
    CONFIG_DOCUMENT_INVALID = "Stored guild configuration for {guild_id} is invalid"

    # Authentication/Bootstrap Errors
    DISCORD_TOKEN_REQUIRED = "DISCORD__TOKEN environment variable is required"
    BOT_NOT_INITIALIZED = "Bot not initialized. Call set_bot() first."
    CONTAINER_NOT_FOUND = "Container not found on bot instance"


class LogTemplates:
    """Log message templates for structured logging.

    Use these with logger.info(), logger.error(), etc. and pass values as parameters
    for proper log formatting and structured logging support.
    """

    # Database Lifecycle
    DATABASE_INITIALIZED = "Database initialized at %s"
    DATABASE_CLOSED = "Database manager closed"

    # Guild Configuration Store
    CONFIG_UPSERTED = "Upserted guild config %s fields=%s"
    CONFIG_DELETED = "Deleted guild config %s"
    CONFIG_STORE_FAILED = "Guild config store failed during %s for guild %s: %r"
    CONFIG_STORE_FAILED_POLICY = "Config store unavailable while evaluating %s in guild %s; denying"

    # Lavalink Node
    NODE_CONNECTING = "Connecting Lavalink node %s at %s"
    NODE_CONNECT_FAILED = "Failed to connect Lavalink node %s: %r"
    NODE_READY = "Lavalink node %s ready (resumed=%s, session=%s)"
    NODE_CLOSED = "Lavalink node %s closed; %d player(s) lost"
    NODE_POOL_CLOSED = "Lavalink pool closed"
    NODE_ERROR = "Lavalink node error in guild %s: %s"
    NODE_NOT_READY = "Lavalink node not ready after %.1fs; music stays offline until it connects"
    RESOLVE_EMPTY = "Resolver returned nothing for %r"
    RESOLVE_FAILED = "Resolver failed for %r: %r"
    TRACK_STUCK = "Track stuck in guild %s after %sms"
    TRACK_EXCEPTION = "Track exception in guild %s: %s"

    # Voice Operations
    VOICE_CONNECTED = "Connected to voice channel %s in guild %s"
    VOICE_MOVED = "Moved to voice channel %s in guild %s"
    VOICE_DISCONNECTED = "Disconnected from voice in guild %s"
    VOICE_CONNECTION_TIMEOUT = "Timeout connecting to channel %s"
    VOICE_NO_PERMISSION = "No permission to connect to channel %s"
    VOICE_CLIENT_ERROR = "Client error connecting: %r"
    VOICE_BOT_LEFT = "Bot left voice channel %s in guild %s"

    # Sessions
    SESSION_CREATED = "Created voice session in guild %s channel %s (origin=%s)"
    SESSION_RELOCATED = "Relocated voice session in guild %s from %s to %s"
    SESSION_DESTROYED = "Destroyed voice session in guild %s (%s)"
    SESSION_TAKEOVER = "Central takeover in guild %s: %s -> %s"

    # Playback Operations
    PLAYBACK_STARTED = "Started playing '%s' in guild %s"
    PLAYBACK_START_FAILED = "Failed to start '%s' in guild %s: %r"
    PLAYBACK_TRANSPORT = "Transport %s applied in guild %s"
    TRACK_END = "Track ended in guild %s (reason=%s)"
    QUEUE_ENDED = "Queue ended in guild %s (autoplay=%s)"
    AUTOPLAY_NO_CANDIDATE = "Autoplay found nothing after '%s' in guild %s"
    QUEUE_ENQUEUED = "Enqueued %d track(s) in guild %s (load=%s)"
    EVENT_IGNORED = "Ignoring %s for guild %s without a session"

    # Policy
    POLICY_DECISION = "Policy %s for %s by %s in guild %s: %s"

    # Projection / Sinks
    PROJECTION_ACTIVE = "Projection active in guild %s: %s"
    PROJECTION_IDLE = "Projection idle in guild %s"
    SINK_FAILED = "Sink %s failed in guild %s: %s"
    SINK_UNEXPECTED_ERROR = "Unexpected error in sink %s for guild %s"
    VOICE_STRATEGY_FAILED = "Voice metadata strategy %s failed on channel %s: %s"
    VOICE_METADATA_APPLIED = "Voice metadata set via %s on channel %s"
    VOICE_METADATA_RESTORED = "Voice metadata restored via %s on channel %s"
    PRESENCE_FAILED = "Failed to update presence: %r"

    # Serializer
    SERIALIZER_JOB_FAILED = "Queued job for guild %s failed"
    SERIALIZER_SHUTDOWN = "Guild serializer stopped (%d worker(s) cancelled)"

    # Central System
    CENTRAL_SETUP = "Central system enabled in guild %s (channel=%s, panel=%s)"
    CENTRAL_DISABLED = "Central system disabled in guild %s"
    CENTRAL_RESET_DONE = "Central panels reset: %d idle, %d republished, %d disabled, %d skipped"
    CENTRAL_RESET_FAILED = "Central panel reset failed for guild %s: %r"
    CENTRAL_REQUEST = "Central request in guild %s by %s: %s"
    CENTRAL_FEEDBACK_FAILED = "Could not deliver central feedback in guild %s: %r"
    SPAM_SWEEP = "Spam limiter sweep evicted %d entries"
    SPAM_DROPPED = "Dropped central message from %s in guild %s (rate limited)"
    BUTTON_FAILED = "Panel button %s failed in guild %s: %s"
    BUTTON_UNEXPECTED_ERROR = "Unexpected error handling panel button %s in guild %s"

    # Bot Lifecycle
    BOT_STARTING = "Starting bot (environment: {environment})"
    BOT_STARTING_RUN = "Starting bot..."
    BOT_STOPPED = "Bot stopped"
    BOT_KEYBOARD_INTERRUPT = "Received keyboard interrupt, shutting down"
    BOT_FATAL_ERROR = "Fatal error: %s"
    BOT_SETUP = "Setting up bot..."
    BOT_SETUP_COMPLETE = "Bot setup complete"
    BOT_CONTAINER_INITIALIZED = "Container initialized"
    BOT_CONTAINER_INIT_FAILED = "Failed to initialize container: %s"
    BOT_COG_LOADED = "Loaded cog: %s"
    BOT_COG_LOAD_FAILED = "Failed to load cog %s: %s"
    BOT_COGS_LOADED_SUMMARY = "Loaded %d cogs (%d failed)"
    BOT_READY = "Bot ready as %s (ID: %s)"
    BOT_CONNECTED_GUILDS = "Connected to %d guilds"
    BOT_SHUTTING_DOWN = "Shutting down bot..."
    BOT_SHUTDOWN_COMPLETE = "Bot shutdown complete"
    BOT_SHUTDOWN_TIMEOUT = "Graceful shutdown timed out after %.1fs"
    BOT_CONTAINER_SHUTDOWN = "Container shutdown complete"
    BOT_CONTAINER_SHUTDOWN_ERROR = "Error during container shutdown: %s"
    BOT_SLASH_COMMAND_ERROR = "Slash command error in /%s (guild %s): %s"
    BOT_PREFIX_COMMAND_ERROR = "Command error in %s (guild %s): %s"
    BOT_ERROR_MESSAGE_SEND_FAILED = "Failed to send error message to user"
    BOT_SYNCED_GUILD = "Synced %d commands to guild %s"
    BOT_SYNC_GUILD_FAILED = "Failed to sync to guild %s: %s"
    BOT_SYNCED_GLOBAL = "Synced %d global commands"
    BOT_SYNC_GLOBAL_FAILED = "Failed to sync global commands: %s"
    BOT_SYNC_ON_STARTUP_FAILED = "Failed to sync commands on startup: %s"

    # Admin
    ADMIN_COMMAND_FAILED = "Admin command failed"
    ADMIN_SYNC_COMMANDS_FAILED = "Failed to sync commands"


class DiscordUIMessages:
    """User-facing texts sent to Discord."""

    # Policy denials
    POLICY_NOT_IN_VOICE = "❌ You need to be in a voice channel to use music commands!"
    POLICY_NO_JOIN_PERMISSION = "❌ I don't have permission to join your voice channel!"
    POLICY_NOTHING_PLAYING = "❌ No music is currently playing!"
    POLICY_BUSY_IN_CENTRAL = (
        "❌ I'm currently in the central music system! "
        "Join <#{channel_id}> or use the central channel to control music."
    )
    POLICY_BUSY_ELSEWHERE = "❌ I'm already playing music in a different voice channel! (<#{channel_id}>)"
    POLICY_WRONG_CHANNEL = "❌ You need to be in <#{channel_id}> voice channel to control music!"
    POLICY_DJ_REQUIRED = "❌ You need DJ permissions to control the music!"
    POLICY_CENTRAL_FORBIDDEN = "❌ You are not allowed to use the central music system!"
    POLICY_MUST_USE_CENTRAL_VC = "❌ You must be in <#{channel_id}> voice channel to use central music system!"
    POLICY_UNAVAILABLE = "❌ The music system is temporarily unavailable. Please try again later."

    # Generic
    ERROR_GENERIC = "❌ An error occurred while processing your request."
    ERROR_SERVER_ONLY = "❌ This command can only be used in a server!"
    ERROR_MISSING_ARGUMENT = "❌ Missing required argument: `{param_name}`"
    ERROR_INVALID_ARGUMENT = "❌ Invalid argument provided."
    ERROR_REQUIRES_OWNER_OR_ADMIN = "❌ This command requires bot owner or administrator permissions."
    ERROR_REQUIRES_MANAGE_GUILD = "❌ You need the **Manage Server** permission to do that!"

    # Play / Join
    PLAY_NOW_PLAYING = "🎵 Now playing: **{title}**"
    PLAY_QUEUED = "🎵 Added to queue: **{title}** (position {position})"
    PLAY_PLAYLIST_QUEUED = "📃 Added **{count}** tracks from **{playlist}** to the queue"
    PLAY_NOT_FOUND = "❌ No results found"
    JOIN_ALREADY_HERE = "✅ I'm already in your voice channel!"
    JOIN_JOINED = "✅ Joined **{channel}**"

    # Transport feedback
    TRANSPORT_PAUSED = "⏸️ Paused the music!"
    TRANSPORT_RESUMED = "▶️ Resumed the music!"
    TRANSPORT_ALREADY_PAUSED = "⏸️ The music is already paused!"
    TRANSPORT_NOT_PAUSED = "▶️ The music is not paused!"
    TRANSPORT_SKIPPED = "⏭️ Skipped **{title}**"
    TRANSPORT_SKIPPED_LAST = "⏭️ Skipped **{title}**, the queue is now empty"
    TRANSPORT_STOPPED = "⏹️ Stopped the music and left the voice channel!"
    TRANSPORT_VOLUME = "🔊 Volume set to **{volume}%**"
    TRANSPORT_LOOP = "{emoji} Loop mode: **{mode}**"
    TRANSPORT_CLEARED = "🗑️ Cleared **{count}** tracks from the queue!"
    TRANSPORT_SHUFFLED = "🔀 Shuffled **{count}** tracks!"
    TRANSPORT_SHUFFLE_EMPTY = "❌ Queue is empty, nothing to shuffle!"
    TRANSPORT_JUMPED = "⏭️ Jumped to track **{position}**: **{title}**"
    TRANSPORT_MOVED = "✅ Moved **{title}** from position {source} to {target}"
    TRANSPORT_REMOVED = "🗑️ Removed **{title}** from the queue"
    TRANSPORT_SEEKED = "⏩ Seeked to **{position}**"
    TRANSPORT_SEEK_UNSUPPORTED = "❌ This track can't be seeked!"

    # Queue / now playing
    QUEUE_EMPTY = "📜 The queue is empty!"
    QUEUE_HEADER = "📜 **Queue ({count} tracks):**"
    QUEUE_MORE = "... and {count} more"
    NOW_PLAYING_NONE = "❌ Nothing is playing right now!"

    # Settings
    AUTOPLAY_ENABLED = "✅ Autoplay has been **enabled**"
    AUTOPLAY_DISABLED = "✅ Autoplay has been **disabled**"

    # Central setup
    CENTRAL_ALREADY_ENABLED = "❌ The central music system is already set up in <#{channel_id}>!"
    CENTRAL_NOT_ENABLED = "❌ The central music system is not set up in this server!"
    CENTRAL_MISSING_PERMISSIONS = "❌ I need **Send Messages**, **Embed Links** and **Manage Messages** permissions in {channel}!"
    CENTRAL_SETUP_DONE = "✅ Central music system set up in {channel}!"
    CENTRAL_SETUP_FAILED = "❌ Failed to set up the central music system."
    CENTRAL_DISABLED = "✅ Central music system has been disabled!"
    CENTRAL_USAGE = (
        "🎵 **Central Music System is live!**\n"
        "• Type a song name or link in this channel to play it\n"
        "• Use the buttons on the panel to control playback\n"
        "• Other messages here are removed automatically"
    )

    # Support
    SUPPORT_TEXT = "🛠️ Need help? Join our support server: {support_url}\n🌐 Website: {website_url}"

    # Admin
    SUCCESS_SYNCED_GLOBAL = "✅ Synced {count} global commands."
    SUCCESS_SYNCED_GUILD = "✅ Synced {count} commands to this guild."
    ERROR_SYNC_FAILED = "❌ Failed to sync commands. Check logs."
    ERROR_COMMAND_FAILED_SEE_LOGS = "❌ Command failed. Check logs for details."
    STATUS_TITLE = "🩺 Music System Status"
