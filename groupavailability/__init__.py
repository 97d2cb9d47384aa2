"""
Group availability engine: common free time, ranking and cached day blocks.
"""

__version__ = "0.1.0"
