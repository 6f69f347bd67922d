"""
CSV ingestion.

- csv_parse: tolerant text -> Table parsing
- base: source base class and file wrapping with lat/lon auto-detection
- files: file/text/URL/example sources and the in-memory file collection
"""
