"""
Centralized constants for the CSV map layer pipeline.

Import from here to keep parsing, detection and derivation consistent.
"""

# Parsing limits
MAX_ERRORS = 200  # Cap on warning messages kept per parsed file
PREVIEW_ROWS = 25  # Rows kept for the preview table
DELIMITER_CANDIDATES = [',', '\t', '|', ';']
DELIMITER_SAMPLE_LINES = 10

# Session limits
MAX_FILES = 100  # Hard cap on files held by one collection

# Year sanity bounds (historical data, wide on purpose)
YEAR_MIN = -2000
YEAR_MAX = 3000

# Day-of-year window (no leap-day slot)
DAY_MIN = 1
DAY_MAX = 365

# Epoch thresholds for numeric date values
EPOCH_MS_THRESHOLD = 1e12
EPOCH_S_THRESHOLD = 1e9

# Header synonyms
LAT_SYNONYMS = ['lat', 'latitude', 'y', 'northing']
LON_SYNONYMS = ['lon', 'lng', 'long', 'longitude', 'x', 'easting']
YEAR_SYNONYMS = ['year', 'yyyy', 'yr', 'ar', 'år']
DATE_SYNONYMS = ['date', 'datetime', 'timestamp', 'time', 'created', 'createdat']
DOY_SYNONYMS = ['dayofyear', 'doy', 'yearday']

SCORE_EXACT = 100
SCORE_CONTAINS = 50

# Feature types
FEATURE_TYPE_POINT = 'point'
FEATURE_TYPE_REGION = 'region'

DEFAULT_PART = '0'
MIN_RING_VERTICES = 3

# Leaflet path defaults
DEFAULT_STYLE = {
    'color': '#3388ff',
    'weight': 2.0,
    'opacity': 1.0,
    'fillColor': '#3388ff',
    'fillOpacity': 0.25,
}

GEO_DETECT_WARNING = (
    "Geo: Could not auto-detect latitude/longitude columns. Choose them manually."
)
MISSING_MAPPING_REASON = "Missing rows or lat/lon mapping."

# Example file names accepted by import_example()
EXAMPLE_NAME_PATTERN = r'^[a-zA-Z0-9._-]+\.csv$'
