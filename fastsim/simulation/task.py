"""
# task.py is a part of the FASTSIM package.
# Copyright (C) 2025 FASTSIM authors (see AUTHORS for details).
# FASTSIM is licensed under the GNU GPL v3 or later, see LICENSE for details.
# Please respect the MCnet Guidelines, see GUIDELINES for details.
"""
from typing import Optional

from .. import config
from ..framework.histograms import Hist1D, OutputList, Profile1D
from ..framework.manager import AnalysisTask
from ..framework.particles import MCParticle, MCParticleCollection
from ..framework.stack import ParticleStack, RunLoader
from ..generators.base import Generator

# ====================================================================== #
# ======================= Fast simulation task ========================= #
# ====================================================================== #

class FastSimulationTask(AnalysisTask):
    """
    Run an event generator once per analysis event and publish its primaries.

    Inputs:
      - name: task name, also used as the run loader folder
      - qa_histos: if True, fill and post the hard-process QA histograms
      - generator: generator to drive (the task does not own it)
      - mc_particles_name: name of the collection published in the input event

    Behavior:
      1. On the first event, `exec_once()` binds the process random source and
         a fresh stack to the generator and initializes it, then publishes the
         particle collection and the stack in the input event (unless objects
         with those names are already there).
      2. Every event, `run()` regenerates the stack and refills the collection
         with one MCParticle per non-null primary, keeping the stack index as
         label and the first mother as mother index.
      3. With qa_histos, the trials, cross-section and p_T,hard histograms are
         filled from the hard-process metadata of the generator header.

    A failed initialization (no generator, or generator init returning False)
    silently disables the task for the rest of the run.
    """

    def __init__(self, name: str = "FastSimulationTask", qa_histos: bool = False,
                 generator: Optional[Generator] = None,
                 mc_particles_name: str = config.mc_particles_name):
        super().__init__(name)
        self.qa_histos = qa_histos
        self.generator = generator
        self.mc_particles_name = mc_particles_name
        self.run_loader: Optional[RunLoader] = None
        self.stack: Optional[ParticleStack] = None
        self.mc_particles: Optional[MCParticleCollection] = None
        self.hist_trials: Optional[Hist1D] = None
        self.hist_xsection: Optional[Profile1D] = None
        self.hist_pt_hard: Optional[Hist1D] = None
        self.output: Optional[OutputList] = None
        # None until the first initialization attempt.
        self._is_init: Optional[bool] = None

        if self.qa_histos:
            self.define_output(config.qa_output_slot, OutputList)

    @property
    def is_initialized(self) -> bool:
        return bool(self._is_init)

    def user_create_output_objects(self) -> None:
        """Create the QA histograms and post them (only with qa_histos)."""
        if not self.qa_histos:
            return

        self.output = OutputList(f"{self.name}_histos")

        self.hist_trials = Hist1D("hist_trials", "trials", 1, 0, 1, y_title="trials")
        self.output.add(self.hist_trials)

        self.hist_xsection = Profile1D("hist_xsection", "xsection", 1, 0, 1, y_title="xsection")
        self.output.add(self.hist_xsection)

        low, high = config.pt_hard_range
        self.hist_pt_hard = Hist1D("hist_pt_hard", "pt-hard distribution", config.pt_hard_bins, low, high,
                                   x_title="p_{T,hard} (GeV/c)", y_title="counts")
        self.output.add(self.hist_pt_hard)

        self.post_data(config.qa_output_slot, self.output)

    def user_exec(self) -> None:
        """Execute per event."""
        if self._is_init is None:
            self._is_init = self.exec_once()
        if not self._is_init:
            return
        self.run()

    def exec_once(self) -> bool:
        """Bind and initialize the generator, publish the output objects. Idempotent."""
        if self._is_init:
            return True
        if self.generator is None or self.process is None:
            return False

        simulation = self.process.ensure_simulation()
        self.generator.set_random(simulation.random)

        if self.generator.hard_process:
            self.generator.set_event_list_range(*config.event_list_range)

        self.run_loader = RunLoader(self.name)
        self.run_loader.make_header()
        self.stack = self.run_loader.make_stack()
        self.generator.set_stack(self.stack)
        if not self.generator.init():
            return False

        event = self.input_event
        existing = event.find_list_object(self.mc_particles_name)
        if existing is None:
            self.mc_particles = MCParticleCollection(self.mc_particles_name, config.mc_particles_capacity)
            event.add_object(self.mc_particles)
        elif isinstance(existing, MCParticleCollection):
            self.mc_particles = existing
        else:
            raise TypeError(f"event object {self.mc_particles_name!r} is a {type(existing).__name__}, "
                            f"not an MCParticleCollection")

        if event.find_list_object(self.stack.name) is None:
            event.add_object(self.stack)

        self._is_init = True
        return True

    def run(self) -> None:
        """Generate one event and copy its primaries into the collection."""
        self.mc_particles.clear()

        self.run_loader.begin_event()
        gen_header = self.generator.generate()
        self.run_loader.finish_event(gen_header)

        for i in range(self.stack.n_primary):
            part = self.stack.particle(i)
            if part is None:
                continue
            self.mc_particles.append(MCParticle.from_stack(part, i))

        self.fill_hard_process_histograms()

    def fill_hard_process_histograms(self) -> None:
        """Fill trials, cross-section and p_T,hard from the generator header, if it has them."""
        if not self.qa_histos:
            return

        gen_header = self.run_loader.header.gen_event_header
        info = gen_header.hard_process() if gen_header is not None else None
        if info is None:
            return

        x = config.counter_bin_center
        self.hist_xsection.fill(x, info.cross_section)
        self.hist_trials.fill(x, info.trials)
        self.hist_pt_hard.fill(info.pt_hard)
