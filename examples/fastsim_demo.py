"""
# fastsim_demo.py is a part of the FASTSIM package.
# Copyright (C) 2025 FASTSIM authors (see AUTHORS for details).
# FASTSIM is licensed under the GNU GPL v3 or later, see LICENSE for details.
# Please respect the MCnet Guidelines, see GUIDELINES for details.
"""
"""
Drive the fast simulation task by hand and look at what it publishes.

    python examples/fastsim_demo.py                      # particle gun
    python examples/fastsim_demo.py --card my_run.cmnd   # Pythia8 (needs pythia8mc)
"""
# Setup repository path for imports
import sys
import argparse
from pathlib import Path

# Add repository root to path for local imports
REPO_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(REPO_ROOT))

# =========================================================== #
# ======================== IMPORTS ========================== #
# =========================================================== #

from fastsim import config
from fastsim.framework import AnalysisManager, ProcessContext, SimulationContext
from fastsim.generators import BoxGenerator, PythiaGenerator
from fastsim.simulation import FastSimulationTask

parser = argparse.ArgumentParser(description="Fast simulation demo")
parser.add_argument("--card", default=None, help="Pythia8 .cmnd run card (particle gun if omitted)")
parser.add_argument("-n", "--n-events", type=int, default=100, help="Number of events")
parser.add_argument("--seed", type=int, default=None, help="Seed of the process random source")
parser.add_argument("--out", default="fastsim_qa.npz", help="Where to write the QA histograms")
args = parser.parse_args()

# Generator.
if args.card:
    generator = PythiaGenerator(cmnd_path=args.card)
else:
    generator = BoxGenerator(n_particles=20, pdg=211)

# Analysis: the task publishes config.mc_particles_name in the event every iteration.
process = ProcessContext(SimulationContext(seed=args.seed) if args.seed is not None else None)
manager = AnalysisManager(process=process)
task = FastSimulationTask(qa_histos=True, generator=generator)
manager.add_task(task)

n_done = manager.start_analysis(args.n_events, progress=True)

if not task.is_initialized:
    print("[✗] Generator initialization failed, nothing was generated")
    sys.exit(1)

particles = manager.event.find_list_object(config.mc_particles_name)
print(f"[✓] Processed {n_done} events (seed {process.simulation.seed})")
print(f"    Last event: {len(particles)} primaries, {len(particles.dangling_mothers())} dangling mother links")
for p in particles[:5]:
    print(f"    label={p.label:4d} id={p.pdg:6d} pT={p.pt:8.3f} eta={p.eta:7.3f} mother={p.mother}")

if task.hist_trials.entries:
    print(f"    trials={task.hist_trials.bin_content(1):.0f} "
          f"xsection={task.hist_xsection.bin_content(1):.4e} mb "
          f"<pT,hard>={task.hist_pt_hard.mean():.2f} GeV/c")
else:
    print("    No hard-process metadata from this generator, QA histograms are empty")

path = manager.write_outputs(args.out)
print(f"[✓] QA histograms written to {path}")
