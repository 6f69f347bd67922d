"""
Feature derivation from parsed rows.

Each derivation is a pure function of rows, field roles and timeline
settings, recomputed in full whenever any of them change.
"""
