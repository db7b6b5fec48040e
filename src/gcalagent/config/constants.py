"""Centralized constants for gcalagent.

Values that can be overridden at runtime live in settings.py; everything here
is fixed protocol or provider detail.
"""

# Key storage constants
KEYRING_SERVICE_NAME = "gcalagent"
KEYRING_ACCOUNT_NAME = "gemini_api_key"

# Environment variable names (prefer free tier if provided)
PREFERRED_ENV_VAR = "GEMINI_API_KEY_FREE"
PRIMARY_ENV_VAR = "GEMINI_API_KEY"

# Environment variables that indicate a serverless runtime
SERVERLESS_ENV_VARS = ("AWS_LAMBDA_FUNCTION_NAME", "VERCEL")

# Calendar provider endpoints
GOOGLE_CALENDAR_BASE_URL = "https://calendar.google.com/calendar/render"
OUTLOOK_CALENDAR_BASE_URL = "https://outlook.live.com/calendar/0/deeplink/compose"
OUTLOOK_COMPOSE_PATH = "/calendar/action/compose"

# ICS calendar constants
ICS_PRODID = "-//gcal-agent//EN"
ICS_VERSION = "2.0"
ICS_UID_DOMAIN = "gcal-agent"
ICS_DATA_URL_PREFIX = "data:text/calendar;charset=utf8,"

# Provenance line appended to descriptions
SOURCE_LINE_TEMPLATE = "Source: {url}"

# Default event duration when the end is missing or not after the start
DEFAULT_EVENT_DURATION_MINUTES = 60

# Supported post URL shapes (posts, reels, IGTV)
INSTAGRAM_URL_PATTERNS = [
    r"^https?://(www\.)?instagram\.com/p/[\w-]+",
    r"^https?://(www\.)?instagram\.com/reel/[\w-]+",
    r"^https?://(www\.)?instagram\.com/tv/[\w-]+",
]

# Extraction strategy names, in default priority order
STRATEGY_OEMBED = "oembed"
STRATEGY_AI_FETCH = "ai_fetch"
STRATEGY_HTML = "html"
STRATEGY_HEADLESS = "headless"
DEFAULT_STRATEGY_ORDER = (
    STRATEGY_OEMBED,
    STRATEGY_AI_FETCH,
    STRATEGY_HTML,
    STRATEGY_HEADLESS,
)

# Per-strategy timeouts in seconds
DEFAULT_STRATEGY_TIMEOUTS = {
    STRATEGY_OEMBED: 10.0,
    STRATEGY_AI_FETCH: 20.0,
    STRATEGY_HTML: 10.0,
    STRATEGY_HEADLESS: 30.0,
}

DEFAULT_OEMBED_ENDPOINT = "https://api.instagram.com/oembed"

# Desktop browser signature used for direct fetches and headless rendering
BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
BROWSER_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "Cache-Control": "no-cache",
    "Upgrade-Insecure-Requests": "1",
}

# Headless rendering
META_WAIT_SELECTOR = 'meta[property="og:description"]'
DEFAULT_META_WAIT_SECONDS = 5.0
DEFAULT_HEADLESS_MAX_CONCURRENCY = 2
SERVERLESS_CHROMIUM_ARGS = [
    "--disable-gpu",
    "--single-process",
    "--no-zygote",
    "--no-sandbox",
]

# Open Graph properties scanned on post pages
OG_DESCRIPTION = "og:description"
OG_TITLE = "og:title"
OG_IMAGE = "og:image"
OG_SITE_NAME = "og:site_name"

# Image input
DEFAULT_IMAGE_MIME_TYPE = "image/jpeg"
SUPPORTED_IMAGE_MIME_TYPES = {
    "image/png",
    "image/jpeg",
    "image/webp",
    "image/heic",
    "image/heif",
}

# Error classification patterns for the completion service
API_KEY_ERROR_PATTERNS = [
    "api key expired",
    "api_key_invalid",
    "invalid api key",
    "api key not valid",
]

RATE_LIMIT_ERROR_PATTERNS = [
    "429",
    "rate limit",
    "resource exhausted",
    "quota exceeded",
]

# Timezone abbreviation to IANA zone mapping
# Maps common (and DST) abbreviations to canonical IANA zones that understand DST
ABBR_TO_TZ = {
    # North America
    "EST": "America/New_York",
    "EDT": "America/New_York",
    "CST": "America/Chicago",
    "CDT": "America/Chicago",
    "MST": "America/Denver",
    "MDT": "America/Denver",
    "PST": "America/Los_Angeles",
    "PDT": "America/Los_Angeles",
    # United Kingdom / Europe
    "GMT": "Europe/London",
    "BST": "Europe/London",
    "CET": "Europe/Paris",
    "CEST": "Europe/Paris",
    # Australia
    "AEST": "Australia/Sydney",
    "AEDT": "Australia/Sydney",
    # Asia
    "IST": "Asia/Kolkata",
}
