"""
ChatQuant - Quantitative Chat Analytics Engine

Single-pass statistics over a normalized message stream: per-person text and
timing metrics, engagement, activity heatmaps, monthly trends and bursts,
two-party reciprocity, group interaction networks, heuristic composite
scores and per-person badges, catchphrases and best time to text.

No message content leaves the process and no model calls are made.
"""

__version__ = "1.0.0"
__author__ = "ChatQuant Team"

from . import config
from . import models
from . import text_features
from . import time_features
from . import accumulator
from . import metrics
from . import trends
from . import reciprocity
from . import network
from . import scores
from . import awards
from . import engine
from . import loader

from .engine import compute_quantitative_analysis

__all__ = [
    "config",
    "models",
    "text_features",
    "time_features",
    "accumulator",
    "metrics",
    "trends",
    "reciprocity",
    "network",
    "scores",
    "awards",
    "engine",
    "loader",
    "compute_quantitative_analysis",
]
