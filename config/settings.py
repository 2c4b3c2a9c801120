"""
Application settings and configuration

Every setting CreatorPulse needs lives here: API keys for the content
sources and AI services, where data is stored on disk, retry behaviour,
and delivery/digest options.

Most settings can be changed by creating a .env file in the project root.
If a setting isn't in .env, it uses the default value shown here.
"""
import os
from dotenv import load_dotenv

# Load environment variables from .env file (if it exists)
load_dotenv()


class Settings:
    """
    Application configuration settings

    Values are read once at import time from the environment.
    """

    # ============================================================
    # Content Source APIs
    # ============================================================
    # X (Twitter) API v2 - needs a bearer token from the developer portal
    X_API_BASE = os.getenv("X_API_BASE", "https://api.twitter.com/2")
    X_BEARER_TOKEN = os.getenv("X_BEARER_TOKEN", "")
    X_MAX_TWEETS = int(os.getenv("X_MAX_TWEETS", "20"))

    # YouTube Data API v3
    YOUTUBE_API_BASE = os.getenv("YOUTUBE_API_BASE", "https://www.googleapis.com/youtube/v3")
    YOUTUBE_API_KEY = os.getenv("YOUTUBE_API_KEY", "")
    YOUTUBE_MAX_VIDEOS = int(os.getenv("YOUTUBE_MAX_VIDEOS", "10"))

    # RSS feeds
    RSS_USER_AGENT = os.getenv("RSS_USER_AGENT", "CreatorPulse/1.0 (RSS Fetcher)")
    RSS_TIMEOUT = float(os.getenv("RSS_TIMEOUT", "10"))
    RSS_MAX_ITEMS = int(os.getenv("RSS_MAX_ITEMS", "20"))

    # Firecrawl (blog scraping + web search)
    FIRECRAWL_API_BASE = os.getenv("FIRECRAWL_API_BASE", "https://api.firecrawl.dev/v1")
    FIRECRAWL_API_KEY = os.getenv("FIRECRAWL_API_KEY", "")

    # Timeout for every outbound HTTP call (seconds)
    HTTP_TIMEOUT = float(os.getenv("HTTP_TIMEOUT", "15"))

    # ============================================================
    # Gemini API Settings
    # ============================================================
    # Gemini writes the drafts, suggests trends and analyses the user's voice.
    # Embeddings power style-sample similarity search.
    GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", "")
    GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-1.5-flash")
    GEMINI_EMBEDDING_MODEL = os.getenv("GEMINI_EMBEDDING_MODEL", "models/gemini-embedding-001")

    # ============================================================
    # Trend Providers
    # ============================================================
    PERPLEXITY_API_BASE = os.getenv("PERPLEXITY_API_BASE", "https://api.perplexity.ai")
    PERPLEXITY_API_KEY = os.getenv("PERPLEXITY_API_KEY", "")
    PERPLEXITY_MODEL = os.getenv("PERPLEXITY_MODEL", "sonar")

    # Default audience context used when asking providers for trends
    DEFAULT_NICHE = os.getenv("DEFAULT_NICHE", "Tech & AI")
    DEFAULT_AUDIENCE = os.getenv("DEFAULT_AUDIENCE", "Entrepreneurs")
    DEFAULT_GEO = os.getenv("DEFAULT_GEO", "US")

    TREND_CACHE_HOURS = int(os.getenv("TREND_CACHE_HOURS", "12"))  # Reuse stored trends this long
    MAX_TRENDS = int(os.getenv("MAX_TRENDS", "5"))
    TREND_RETENTION_DAYS = int(os.getenv("TREND_RETENTION_DAYS", "30"))  # Older trends are dropped on save

    # ============================================================
    # Image Generation (Replicate)
    # ============================================================
    REPLICATE_API_BASE = os.getenv("REPLICATE_API_BASE", "https://api.replicate.com/v1")
    REPLICATE_API_TOKEN = os.getenv("REPLICATE_API_TOKEN", "")
    REPLICATE_IMAGE_MODEL = os.getenv("REPLICATE_IMAGE_MODEL", "black-forest-labs/flux-schnell")
    IMAGE_POLL_INTERVAL = float(os.getenv("IMAGE_POLL_INTERVAL", "10"))  # Seconds between status checks
    IMAGE_POLL_ATTEMPTS = int(os.getenv("IMAGE_POLL_ATTEMPTS", "30"))  # 30 x 10s = 5 minutes

    # ============================================================
    # Storage Settings
    # ============================================================
    # All data is stored in JSON files, one file per user
    DATA_DIR = os.getenv("DATA_DIR", "data")
    SOURCES_DIR = os.path.join(DATA_DIR, "sources")
    DRAFTS_DIR = os.path.join(DATA_DIR, "drafts")
    TRENDS_DIR = os.path.join(DATA_DIR, "trends")
    USER_SETTINGS_DIR = os.path.join(DATA_DIR, "user_settings")
    DIGESTS_DIR = os.path.join(DATA_DIR, "digests")
    GENERATIONS_DIR = os.path.join(DATA_DIR, "generations")  # Downloaded images
    CACHE_DIR = os.path.join(DATA_DIR, "cache")
    CHROMA_DB_DIR = os.getenv("CHROMA_DB_DIR", os.path.join(CACHE_DIR, "chroma"))  # Style sample vectors
    STYLE_COLLECTION = os.getenv("STYLE_COLLECTION", "style_samples")

    # Single-user installs run everything under this id
    DEFAULT_USER_ID = os.getenv("DEFAULT_USER_ID", "local-user")

    # ============================================================
    # LLM Batching & Rate Limiting
    # ============================================================
    LLM_EMBEDDING_BATCH_SIZE = int(os.getenv("LLM_EMBEDDING_BATCH_SIZE", "100"))  # Embedding API limit
    LLM_RETRY_ATTEMPTS = int(os.getenv("LLM_RETRY_ATTEMPTS", "3"))
    LLM_RETRY_DELAY_BASE = float(os.getenv("LLM_RETRY_DELAY_BASE", "2.0"))
    LLM_BATCH_DELAY = float(os.getenv("LLM_BATCH_DELAY", "1.0"))  # Pause between platform generations
    LLM_RATE_LIMIT_DELAY = float(os.getenv("LLM_RATE_LIMIT_DELAY", "15.0"))
    DRAFT_TEMPERATURE = float(os.getenv("DRAFT_TEMPERATURE", "0.7"))
    DRAFT_MAX_OUTPUT_TOKENS = int(os.getenv("DRAFT_MAX_OUTPUT_TOKENS", "800"))

    # ============================================================
    # Generate Now
    # ============================================================
    GENERATE_RATE_LIMIT_SECONDS = int(os.getenv("GENERATE_RATE_LIMIT_SECONDS", "60"))  # One run per user per minute
    MAX_TOPICS_PER_RUN = int(os.getenv("MAX_TOPICS_PER_RUN", "3"))
    STYLE_FEW_SHOTS = int(os.getenv("STYLE_FEW_SHOTS", "4"))

    # ============================================================
    # Delivery / Scheduler Settings
    # ============================================================
    DEFAULT_TIMEZONE = os.getenv("DEFAULT_TIMEZONE", "UTC")
    DEFAULT_DELIVER_HOUR = int(os.getenv("DEFAULT_DELIVER_HOUR", "8"))  # 24-hour format
    SCHEDULER_CHECK_SECONDS = int(os.getenv("SCHEDULER_CHECK_SECONDS", "60"))

    # ============================================================
    # Logging Settings
    # ============================================================
    # Options: DEBUG, INFO, WARNING, ERROR
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE = os.getenv("LOG_FILE", "logs/app.log")

    # ============================================================
    # Email Settings
    # ============================================================
    # For Gmail: You need to create an "App Password" (not your regular password)
    PRODUCT_NAME = os.getenv("PRODUCT_NAME", "CreatorPulse")
    SMTP_SERVER = os.getenv("SMTP_SERVER", "smtp.gmail.com")
    SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USERNAME = os.getenv("SMTP_USERNAME", "")
    SMTP_PASSWORD = os.getenv("SMTP_PASSWORD", "")
    FROM_EMAIL = os.getenv("FROM_EMAIL", "")
    TO_EMAIL = os.getenv("TO_EMAIL", "")
    SMTP_USE_TLS = os.getenv("SMTP_USE_TLS", "true").lower() == "true"

    @staticmethod
    def ensure_directories():
        """
        Create necessary directories if they don't exist

        Storage classes also create their own folder, this just makes
        a fresh checkout usable before anything has been saved.
        """
        for directory in (
            Settings.DATA_DIR,
            Settings.SOURCES_DIR,
            Settings.DRAFTS_DIR,
            Settings.TRENDS_DIR,
            Settings.USER_SETTINGS_DIR,
            Settings.DIGESTS_DIR,
            Settings.GENERATIONS_DIR,
            Settings.CACHE_DIR,
            Settings.CHROMA_DB_DIR,
        ):
            os.makedirs(directory, exist_ok=True)
        os.makedirs(os.path.dirname(Settings.LOG_FILE) if os.path.dirname(Settings.LOG_FILE) else "logs", exist_ok=True)


# Global settings instance
settings = Settings()
