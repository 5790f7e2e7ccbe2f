"""Shuttle - carries requests across to whatever origin they name.

A dynamic reverse proxy: ``GET /?url=<target>`` is forwarded to the target's
origin through one cached, origin-bound client per origin.
"""

__version__ = "0.1.0"
