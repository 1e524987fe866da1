"""Constants shared across the index browser."""

# Typesense treats a bare asterisk as "match every document".
MATCH_ALL_QUERY = "*"

DEFAULT_PAGE_SIZE = 25
DEFAULT_DEBOUNCE_MS = 500

# Matches connectionTimeoutSeconds of the desktop client.
DEFAULT_CONNECTION_TIMEOUT = 10.0

NUMERIC_FIELD_TYPES = ("int32", "int64", "float")
STRING_FIELD_TYPES = ("string", "string[]", "string*")

FILTER_JOINER = " && "

HIGHLIGHT_START_TAG = "<mark>"
HIGHLIGHT_END_TAG = "</mark>"

API_KEY_HEADER = "X-TYPESENSE-API-KEY"
