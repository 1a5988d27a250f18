"""Application constants."""

# Profile defaults for a first authenticated load
DEFAULT_BMR = 2000

# Subscriptions
DEFAULT_CATEGORY_COLOR = "#00A1FE"
WEEKS_PER_MONTH = 4.33  # average, used for weekly -> monthly
WEEKS_PER_YEAR = 52

# Winners Bible storage
WINNERS_BIBLE_BUCKET = "winners-bible"

# Nirvana session types seeded for new users
DEFAULT_SESSION_TYPES = (
    "Mobility: Shoulder, elbow, and wrist",
    "Mobility: Spine",
    "Mobility: hip, knee, and ankle",
    "Beginner handstands",
    "Handstands",
    "Press handstand",
    "Handstand push-up",
    "Abs and glutes",
    "Power yoga",
    "Pilates",
    "Back bends",
    "Single leg squat",
    "Side splits",
    "Front splits",
    "Yin yoga",
)

# Export format version (2.x = relational format)
EXPORT_VERSION = "2.0.0"

# New users start with no compounds; the list grows as they log injections
DEFAULT_COMPOUNDS: tuple[str, ...] = ()

# Macro targets are free-text form values until the user fills them in
DEFAULT_MACRO_TARGETS = {"calories": "", "carbs": "", "protein": "", "fat": ""}

# Winners Bible uploads
STORAGE_NAME_PATTERN = r"[^a-zA-Z0-9.-]"
