"""
# __init__.py is a part of the FASTSIM package.
# Copyright (C) 2025 FASTSIM authors (see AUTHORS for details).
# FASTSIM is licensed under the GNU GPL v3 or later, see LICENSE for details.
# Please respect the MCnet Guidelines, see GUIDELINES for details.
"""
"""Fast simulation task. The orchestral tool wrapper lives in `tool.py`."""
from .task import FastSimulationTask
