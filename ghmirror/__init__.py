"""
gh-mirror - Keep one-way mirrors of upstream repositories on your own account.

"A mirror only reflects. It never talks back." — schema.cx
"""

__version__ = "0.2.0"
__license__ = "MIT"

from .models import Config, MirrorEntry, SyncResult, SyncSummary

__all__ = [
    "Config",
    "MirrorEntry",
    "SyncResult",
    "SyncSummary",
    "__version__",
]
