"""
h1vault

Pulls HackerOne reports and earnings into a local Markdown vault, one note
per report with its bounty, severity and program in the frontmatter.
"""

from .api import HackerOneClient
from .config import Settings, SettingsStore
from .notes import ReportNote, build_note
from .reconcile import reconcile
from .sync import BugBountySync, SyncScheduler
from .vault import VaultStore

__all__ = [
    "HackerOneClient",
    "Settings",
    "SettingsStore",
    "ReportNote",
    "build_note",
    "reconcile",
    "BugBountySync",
    "SyncScheduler",
    "VaultStore",
]

__version__ = "0.1.0"
