"""
Content operations console: local state-synchronization and integration layer.
"""

__version__ = "1.0.0"
