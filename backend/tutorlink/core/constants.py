"""Application-wide constants for the Tutorlink platform."""

BRAND_NAME = "Tutorlink"
API_VERSION = "1.0.0"
API_PREFIX = "/api"
API_TITLE = f"{BRAND_NAME} API"
API_DESCRIPTION = "Backend API for booking tutoring sessions, paying for them and reviewing tutors."

# Text constraints
MAX_NOTES_LENGTH = 500
MAX_COMMENT_LENGTH = 500
MAX_SUBJECT_NAME_LENGTH = 50
MAX_DESCRIPTION_LENGTH = 500
MAX_BIO_LENGTH = 1000
MIN_PASSWORD_LENGTH = 6

# Ratings
MIN_RATING = 1
MAX_RATING = 5

# Weekly availability
WEEKDAYS = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)
TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"

# Crockford base32, 26 characters
ULID_PATH_PATTERN = r"^[0-9A-HJKMNP-TV-Z]{26}$"

# Query limits
DEFAULT_QUERY_LIMIT = 100
