"""EV charging plan engine.

Decides, tick by tick, whether a charge point should be drawing power so that a
charging goal is met by a deadline at the lowest forecast price.
"""

__version__ = "0.1.0"
