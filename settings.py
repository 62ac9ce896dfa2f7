"""Central settings for the food truck event scraper."""

# =============================================================================
# SPREADSHEET LAYOUT
# =============================================================================
# One spreadsheet with three tabs. Row 1 of each tab is a header.
EVENTS_TAB = "Events"
TRUCKS_TAB = "Trucks"
VENUES_TAB = "Venues"
SHEET_READ_RANGE = "A2:M"         # Columns read from every tab (header skipped)
EVENTS_APPEND_RANGE = "A:F"       # DateStart, TimeStart, TimeEnd, Truck, Venue, Notes

# Column indexes (0-based) used to build the source manifest
TRUCK_NAME_COL = 0
TRUCK_URL_COL = 4
VENUE_NAME_COL = 0
VENUE_URL_COL = 9
INSTRUCTIONS_COL = 10             # Free-text schedule notes (both tabs)
STRATEGY_COL = 11                 # Acquisition strategy key (both tabs)

# Event row columns (Events tab)
EVENT_DATE_COL = 0
EVENT_TRUCK_COL = 3
EVENT_VENUE_COL = 4

# =============================================================================
# SOURCE SELECTION
# =============================================================================
MIN_INSTRUCTION_CHARS = 10        # Instructions must be longer than this to drive rule extraction
MIN_CORPUS_CHARS = 50             # Scraped text shorter than this counts as "no content"

# =============================================================================
# BROWSER / ACQUISITION
# =============================================================================
BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
BROWSER_ARGS = (
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--ignore-certificate-errors",
    "--allow-running-insecure-content",
    "--disable-web-security",
)
NAVIGATION_TIMEOUT_MS = 25000          # Playwright goto timeout for https sources
INSECURE_NAVIGATION_CEILING_MS = 12000  # Hard ceiling for plaintext http sources (often hang)
NAVIGATION_SETTLE_MS = 2000            # Pause after navigation before running a strategy

SCROLL_STEP_PX = 150              # Pixels per scroll tick
SCROLL_INTERVAL_MS = 100          # Delay between scroll ticks
SCROLL_HEIGHT_FACTOR = 1.5        # Stop once scrolled 1.5x the page height
SCROLL_MAX_MS = 15000             # Hard ceiling on scrolling
SCROLL_SETTLE_MS = 3000           # Wait for lazy content after scrolling

CLICK_NEXT_MAX_PAGES = 4          # Max pagination clicks per source
CLICK_NEXT_WAIT_MS = 5000         # Wait after each pagination click
CLICK_NEXT_MAX_LABEL_CHARS = 50   # Longer element text is never a pagination control

FRAME_MIN_TEXT_CHARS = 50         # Frames with less visible text are ignored

# =============================================================================
# LLM (Gemini)
# =============================================================================
GEMINI_MODEL = "gemini-2.5-flash-lite"   # Fast/low-cost model; extraction is simple structure
GEMINI_TEMPERATURE = 0.0                 # Deterministic output for repeatable extraction
GEMINI_MAX_RETRIES = 3                   # Total extraction attempts per source
GEMINI_RETRY_DELAY_SEC = 5.0             # Fixed pause between extraction attempts
GEMINI_RETRY_BACKOFF_MULTIPLIER = 1.0    # 1.0 keeps the delay fixed
EXTRACTION_MAX_CORPUS_CHARS = 150000     # Corpus cap sent to the LLM

# =============================================================================
# SCHEDULING
# =============================================================================
TIMEZONE = "Europe/London"        # "Today" for rule expansion and prompts
RECURRENCE_WINDOW_DAYS = 28       # Rules expand into this many days starting today

CONTACT_VENUE = "Contact Venue"   # Start time placeholder when no time could be parsed
UNKNOWN_VENUE = "Unknown"         # Venue placeholder when the extraction gave none
NEW_TRUCK_FLAG = "[⚠️ NEW TRUCK]"  # Notes flag for trucks missing from the registry
