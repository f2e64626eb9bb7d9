"""
# config.py is a part of the FASTSIM package.
# Copyright (C) 2025 FASTSIM authors (see AUTHORS for details).
# FASTSIM is licensed under the GNU GPL v3 or later, see LICENSE for details.
# Please respect the MCnet Guidelines, see GUIDELINES for details.
"""
import sys

# Name under which the generated particles are published in the event.
mc_particles_name = "GenParticles"

# Initial number of slots reserved for the generated particle collection.
mc_particles_capacity = 1000

# Output slot used for the QA histogram list.
qa_output_slot = 1

# Bin center used by the one-bin trials and cross-section accumulators.
counter_bin_center = 0.5

# p_T,hard distribution binning (GeV/c).
pt_hard_bins = 500
pt_hard_range = (0.0, 500.0)

# Events listed by hard-process generators (first, last).
event_list_range = (0, 1)

# Pythia8 accepts seeds in [1, 900000000).
pythia_seed_max = 900_000_000

# Settings applied before the run card to keep Pythia quiet.
pythia_quiet_settings = [
    "Print:quiet = on",
    "Init:showProcesses = off",
    "Init:showMultipartonInteractions = off",
    "Init:showChangedSettings = off",
    "Init:showChangedParticleData = off",
    "Next:numberShowInfo = 0",
    "Next:numberShowProcess = 0",
    "Next:numberShowEvent = 0",
]

# Schema tag written in every JSONL event line.
schema_version = "evtjsonl-1.0"

# Configure tqdm to prevent multiple line printing
tqdm_config = {
    'file': sys.stderr,
    'ncols': 80,
    'leave': True,
    'dynamic_ncols': False,
    'mininterval': 0.1,
    'ascii': False
}
