"""
Feature-type discriminator.

A CSV may mix points and regions; the optional featureType column says which
geometry a row contributes to. Rows without a value are treated as points.
"""

from typing import Optional

from csvmap.models import Row


def get_row_feature_type(row: Row, feature_type_field: Optional[str]) -> Optional[str]:
    """Trimmed, lower-cased feature type of a row, or None."""
    if not isinstance(row, dict) or not feature_type_field:
        return None

    value = str(row.get(feature_type_field) or '').strip()
    if not value:
        return None

    return value.lower()
