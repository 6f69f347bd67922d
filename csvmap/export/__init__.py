"""
Export of derived features (GeoJSON).
"""
