"""
csvmap: derive map points and regions from loosely structured CSV files.
"""

__version__ = '0.1.0'
