"""
# __init__.py is a part of the FASTSIM package.
# Copyright (C) 2025 FASTSIM authors (see AUTHORS for details).
# FASTSIM is licensed under the GNU GPL v3 or later, see LICENSE for details.
# Please respect the MCnet Guidelines, see GUIDELINES for details.
"""
"""Host-side services: analysis manager, event container, stack, histograms."""
from .context import ProcessContext, SimulationContext
from .histograms import Hist1D, OutputList, Profile1D
from .manager import AnalysisManager, AnalysisTask, EventContainer
from .particles import MCParticle, MCParticleCollection
from .stack import EventHeader, ParticleStack, RunLoader, StackParticle
