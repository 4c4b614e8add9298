"""
MKV font subsetting toolkit.
"""

__version__ = "0.1.0"
