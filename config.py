"""
Configuration - Bot configuration, search tuning and scoring tables
"""

import os

# Bot Configuration
BOT_CONFIG = {
    'prefix': '.',  # Fallback prefix for text commands
    'description': 'Discord music bot with fallback search and cross-catalog matching',
    'max_queue_size': 500,
    'max_playlist_size': 100,
    'default_volume': 0.75,
    'skip_delay': 2,  # seconds before skipping past a failed track
    'inactivity_timeout': 300,  # 5 minutes of empty queue
}

# Search Configuration
SEARCH_CONFIG = {
    'search_prefix': 'ytsearch:',
    'cross_catalog_search_prefix': 'spsearch:',
    'results_per_search': 5,
    'truncate_words': 4,
    'video_fallback_term': 'music video',  # placeholder until real title extraction exists
    'alternative_suffixes': ['official', 'audio', 'music', 'topic', 'lyrics'],
    'min_replacement_query_length': 3,
    'search_timeout': float(os.getenv('SEARCH_TIMEOUT', '0')) or None,  # seconds, None = unbounded
}

# Retry Ledger Configuration (seconds)
RETRY_CONFIG = {
    'retry_window': 5 * 60,
    'entry_expiry': 10 * 60,
    'sweep_interval': 10 * 60,
}

# Cross-catalog and replacement matching thresholds (milliseconds)
MATCH_CONFIG = {
    'close_duration_ms': 10_000,
    'near_duration_ms': 30_000,
    'far_duration_ms': 120_000,
    'min_confident_score': 20,
    'replacement_min_duration_diff_ms': 60_000,
    'replacement_duration_ratio': 0.3,
}

# Ranking weights for candidates returned by a fallback query
RANKING_WEIGHTS = {
    'title_official': 3,
    'title_audio': 2,
    'title_music': 2,
    'author_topic': 2,
    'title_lyrics': 1,
    'title_live': -2,
    'title_stream': -2,
    'title_radio': -1,
    'title_unofficial_remix': -1,
}

# Weights for matching one catalog's track against another catalog's results
MATCH_WEIGHTS = {
    'title_match': 50,
    'artist_match': 30,
    'duration_close': 20,
    'duration_near': 10,
    'duration_far': -20,
    'title_official': 10,
    'title_audio': 8,
    'author_topic': 5,
    'title_live': -15,
    'title_cover': -15,
    'title_unofficial_remix': -10,
    'title_karaoke': -20,
}

# YT-DLP Configuration
YTDL_CONFIG = {
    'format': 'bestaudio/best',
    'noplaylist': True,
    'nocheckcertificate': True,
    'ignoreerrors': False,
    'logtostderr': False,
    'quiet': True,
    'no_warnings': True,
    'default_search': 'ytsearch',
    'source_address': '0.0.0.0',
    'extractor_retries': 3,
}

# Search only needs metadata, not stream formats
YTDL_SEARCH_CONFIG = dict(YTDL_CONFIG, **{
    'extract_flat': 'in_playlist',
    'noplaylist': False,
    'skip_download': True,
})

# FFMPEG Configuration
FFMPEG_CONFIG = {
    'before_options': (
        '-reconnect 1 '
        '-reconnect_streamed 1 '
        '-reconnect_delay_max 5'
    ),
    'options': '-vn -ar 48000 -ac 2',
}

# Spotify Configuration
SPOTIFY_CONFIG = {
    'client_id': os.getenv('SPOTIFY_CLIENT_ID', ''),
    'client_secret': os.getenv('SPOTIFY_CLIENT_SECRET', ''),
    'market': 'US',
    'search_limit': 5,
    'requests_timeout': 10,
    'retries': 3,
}

# Discord Configuration
DISCORD_CONFIG = {
    'token': os.getenv('DISCORD_TOKEN', ''),
    'activity_name': 'music | /play',
    'max_message_length': 2000,
}

# Logging Configuration
LOGGING_CONFIG = {
    'level': 'INFO',
    'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    'file': 'bot.log',
    'max_file_size': 10 * 1024 * 1024,  # 10MB
    'backup_count': 5,
}

# Error Messages
ERROR_MESSAGES = {
    'not_in_voice': "❌ You must be in a voice channel to use music commands!",
    'connection_failed': "❌ Failed to connect to voice channel.",
    'no_track_playing': "❌ Nothing is currently playing!",
    'not_paused': "❌ The music is already playing!",
    'queue_empty': "❌ The queue is empty.",
    'not_found': "❌ No results found for: {query}",
    'not_found_timeout': "❌ No results found for: {query} (the search service timed out)",
    'provider_error': "❌ Error loading track: {message}",
    'gave_up': "❌ **Skipping problematic track:** {title} (repeated playback issues)",
    'sign_in_blocked': "❌ **YouTube access blocked:** {title} (authentication required)",
    'no_alternative': "❌ **Could not find working alternative for:** {title}",
    'insufficient_info': "❌ **Cannot find alternative for:** {title} (insufficient track info)",
    'playback_failed': "❌ **Error playing:** {title}\nReason: {reason}",
    'no_alternatives_found': "❌ No alternatives found for: {query}",
    'no_alternatives_stored': "❌ No alternatives available. Use `/alt <song>` first to find alternatives.",
    'invalid_alternative': "❌ Invalid number. Choose between 1 and {count}.",
    'queue_full': "❌ Queue is full! Maximum size is {max_size} tracks.",
    'unexpected': "❌ An error occurred while loading the track. Please try again or use a different search term.",
}

# Success Messages
SUCCESS_MESSAGES = {
    'track_added': "✅ Added to queue: **{title}** by {author}",
    'playlist_added': "✅ Playlist **{name}** with {count} songs added to the queue!",
    'now_playing': "🎵 **Now Playing:** {title} by {author}",
    'recovering_sign_in': "🔐 **YouTube access restricted:** {title}\n🔄 Trying alternative search methods...",
    'recovering_decoding': "❌ **Audio decoding error:** {title}\n🔄 Searching for alternative version...",
    'alternative_found': "✅ **Found alternative:** {title} by {author}",
    'alternative_added': "✅ Added alternative: **{title}** by {author}",
    'searching_alternatives': "🔍 **Searching for alternatives to:** {query}",
    'track_skipped': "⏭️ Skipped: **{title}**",
    'playback_stopped': "⏹️ Stopped the music and cleared the queue.",
    'force_retry': "🔄 **Force retrying:** {title}",
    'retries_cleared': "🧹 **Cleared {count} retry records.** Tracks can now be retried again.",
    'queue_ended': "🔇 Queue ended. Add more songs or I'll leave in {minutes} minutes!",
    'left_inactive': "👋 Left the voice channel due to inactivity.",
    'paused': "⏸️ Paused the music!",
    'resumed': "▶️ Resumed the music!",
}

_SECTIONS = {
    'bot': BOT_CONFIG,
    'search': SEARCH_CONFIG,
    'retry': RETRY_CONFIG,
    'match': MATCH_CONFIG,
    'ranking_weights': RANKING_WEIGHTS,
    'match_weights': MATCH_WEIGHTS,
    'ytdl': YTDL_CONFIG,
    'ffmpeg': FFMPEG_CONFIG,
    'spotify': SPOTIFY_CONFIG,
    'discord': DISCORD_CONFIG,
    'logging': LOGGING_CONFIG,
}

# Credentials are read once at startup and are not runtime-tunable
_MUTABLE_SECTIONS = ('bot', 'search', 'retry', 'match', 'ranking_weights', 'match_weights')


def get_config_value(section: str, key: str, default=None):
    """Get a configuration value with fallback to default."""
    return _SECTIONS.get(section, {}).get(key, default)


def update_config_value(section: str, key: str, value):
    """Update a configuration value at runtime."""
    if section in _MUTABLE_SECTIONS and key in _SECTIONS[section]:
        _SECTIONS[section][key] = value
        return True
    return False


def validate_config():
    """Validate configuration values and environment variables."""
    errors = []
    warnings = []

    # Check required environment variables
    if not DISCORD_CONFIG['token']:
        errors.append("DISCORD_TOKEN environment variable is required!")

    # Check Spotify configuration
    if not SPOTIFY_CONFIG['client_id'] or not SPOTIFY_CONFIG['client_secret']:
        warnings.append("Spotify credentials not found. Spotify links will not resolve.")

    # Validate numeric ranges
    if RETRY_CONFIG['entry_expiry'] < RETRY_CONFIG['retry_window']:
        warnings.append("Retry entry expiry is shorter than the retry window, using the window")
        RETRY_CONFIG['entry_expiry'] = RETRY_CONFIG['retry_window']

    if RETRY_CONFIG['sweep_interval'] <= 0:
        warnings.append("Invalid sweep interval, using 600 seconds")
        RETRY_CONFIG['sweep_interval'] = 600

    if not 0 <= BOT_CONFIG['default_volume'] <= 1:
        warnings.append("Invalid default volume, using 0.75")
        BOT_CONFIG['default_volume'] = 0.75

    if BOT_CONFIG['max_queue_size'] <= 0:
        warnings.append("Invalid max queue size, using 500")
        BOT_CONFIG['max_queue_size'] = 500

    return errors, warnings
