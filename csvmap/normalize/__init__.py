"""
Column detection and value coercion.

- headers: header role detection by synonym scoring
- geo_columns: coordinate parsing and validation
- date_utils: year, date and day-of-year parsing
"""
