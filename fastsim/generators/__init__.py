"""
# __init__.py is a part of the FASTSIM package.
# Copyright (C) 2025 FASTSIM authors (see AUTHORS for details).
# FASTSIM is licensed under the GNU GPL v3 or later, see LICENSE for details.
# Please respect the MCnet Guidelines, see GUIDELINES for details.
"""
"""Event generators that can be driven by the fast simulation task."""
from .base import (
    Generator,
    GenEventHeader,
    HardProcessEventHeader,
    HardProcessInfo,
)
from .box import BoxGenerator
from .pythia import PythiaGenerator, _require_pythia
