"""netindicator: network traffic rate indicator.

Samples system-wide rx/tx byte counters on a timer and renders a compact
rate label, a direction icon and a show/hide decision through a render sink.
"""

from netindicator.controller import IndicatorController
from netindicator.formatting import UnitMode, format_rate
from netindicator.modes import DisplayMode, resolve_mode
from netindicator.sampler import RateSample, RateSampler, compute_rates
from netindicator.visibility import decide_visible

__version__ = "0.1.0"

__all__ = [
    "DisplayMode",
    "IndicatorController",
    "RateSample",
    "RateSampler",
    "UnitMode",
    "compute_rates",
    "decide_visible",
    "format_rate",
    "resolve_mode",
]
