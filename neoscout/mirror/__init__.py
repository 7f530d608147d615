# File: neoscout/mirror/__init__.py
"""neoscout.mirror: download pipeline and post-download reconciliation."""

from .downloader import Downloader
from .reconciler import MirrorReconciler

__all__ = ["Downloader", "MirrorReconciler"]
