"""
# __init__.py is a part of the FASTSIM package.
# Copyright (C) 2025 FASTSIM authors (see AUTHORS for details).
# FASTSIM is licensed under the GNU GPL v3 or later, see LICENSE for details.
# Please respect the MCnet Guidelines, see GUIDELINES for details.
"""
"""Generator-driving fast simulation task for event-based HEP analyses."""

# Re-export modules for convenient imports
from . import config
from . import framework
from . import generators
from . import simulation
