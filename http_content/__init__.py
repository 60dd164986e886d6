"""
http-content: a content-addressable download cache for remote assets.
"""

__version__ = "1.2.0"
