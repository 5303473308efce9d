"""Constants shared across the boost relay."""

# Helipad action codes
ACTION_ERROR = 0
ACTION_STREAM = 1
ACTION_BOOST = 2
ACTION_UNKNOWN = 3
ACTION_AUTO_BOOST = 4

ACTION_NAMES = {
    ACTION_ERROR: "Error",
    ACTION_STREAM: "Stream",
    ACTION_BOOST: "Boost",
    ACTION_UNKNOWN: "Unknown",
    ACTION_AUTO_BOOST: "Auto Boost",
}

# Session aggregation defaults
DEFAULT_BUCKET_SECONDS = 120
DEFAULT_GRACE_SECONDS = 30.0
DEFAULT_FINALIZED_RETENTION_SECONDS = 3600.0

# Duplicate screening defaults
DEFAULT_DUPLICATE_WINDOW_SECONDS = 300.0
DEFAULT_DUPLICATE_COMPARE_COUNT = 2
DEFAULT_RECENT_POST_CAP = 5
DEFAULT_SIMILARITY_THRESHOLD = 0.9

# Nostr
DEFAULT_RELAYS = (
    "wss://relay.damus.io",
    "wss://relay.nostr.band",
    "wss://relay.primal.net",
)
DEFAULT_PUBLISH_TIMEOUT_SECONDS = 30.0
PUBLISH_ATTEMPTS = 2
PUBLISH_RETRY_DELAY_SECONDS = 2.0

SOCIAL_HASHTAGS = ("boost", "value4value", "podcasting20")

PODCAST_INDEX_API_URL = "https://api.podcastindex.org/api/1.0"
PODCAST_INDEX_SHOW_URL = "https://podcastindex.org/podcast"
LNBEATS_ALBUM_URL = "https://lnbeats.com/album"


def action_name(action: int) -> str:
    """Human-readable name of a Helipad action code."""
    return ACTION_NAMES.get(action, "Unknown")
