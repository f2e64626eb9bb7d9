"""
# tool.py is a part of the FASTSIM package.
# Copyright (C) 2025 FASTSIM authors (see AUTHORS for details).
# FASTSIM is licensed under the GNU GPL v3 or later, see LICENSE for details.
# Please respect the MCnet Guidelines, see GUIDELINES for details.
"""

import json, os, datetime
from typing import IO, Optional

from orchestral.tools.base.tool import BaseTool
from orchestral.tools.base.field_utils import RuntimeField, StateField

from .. import config
from ..framework.context import ProcessContext, SimulationContext
from ..framework.manager import AnalysisManager, AnalysisTask
from ..generators.box import BoxGenerator
from ..generators.pythia import PythiaGenerator, _require_pythia
from .task import FastSimulationTask

_GENERATORS = ("pythia", "box")

# ====================================================================== #
# ==================== Generated particles writer ====================== #
# ====================================================================== #

class GenParticlesWriterTask(AnalysisTask):
    """
    Stream the published particle collection of every event to a JSONL file.

    The collection is looked up by name in the input event, so the task must run
    after the task publishing it. Events without the collection are not written.
    """

    def __init__(self, fp: IO[str], name: str = "GenParticlesWriter",
                 mc_particles_name: str = config.mc_particles_name, finals_only: bool = False):
        super().__init__(name)
        self.fp = fp
        self.mc_particles_name = mc_particles_name
        self.finals_only = finals_only
        self.n_written = 0
        self.n_particles = 0
        self.n_dangling = 0
        self._schema_meta = {
            "schema": config.schema_version,
            "finals_only": bool(finals_only),
            # Records carry mother1, mother2, daughter1 and daughter2.
            "full_history": True,
        }

    def user_exec(self) -> None:
        particles = self.input_event.find_list_object(self.mc_particles_name)
        if particles is None:
            return
        records = particles.to_dicts()
        row = {
            **self._schema_meta,
            "event_id": self.input_event.event_number,
            "data": {"n": len(records), "particles": records},
        }
        self.fp.write(json.dumps(row, separators=(",", ":"), ensure_ascii=False) + "\n")
        self.n_written += 1
        self.n_particles += len(records)
        self.n_dangling += len(particles.dangling_mothers())

# ====================================================================== #
# ====================== Fast simulation tool ========================== #
# ====================================================================== #

class FastSimulationTool(BaseTool):
    """
    Run the fast simulation task for a number of events and store its output.

    Inputs (runtime):
      - data_dir: relative output directory under base_directory
      - n_events: number of events to generate
      - generator: 'pythia' (needs cmnd_path) or 'box' (particle gun)
      - cmnd_path: relative path to a Pythia8 .cmnd run card
      - seed: optional integer seed of the process random source
      - qa_histos: if True, fill trials, cross-section and p_T,hard histograms
      - finals_only: Pythia only, copy only final-state particles to the stack
      - n_particles, pdg: box only, particles per event and their species
      - base_directory: sandbox root for all file operations

    Behavior:
      1. Build an analysis manager holding the fast simulation task followed by
         a writer task reading the published collection back from the event.
      2. Run n_events events; every event is written to events.jsonl
         (schema "evtjsonl-1.0", particles carry `mother1` stack indices).
      3. With qa_histos, flush the histograms to qa_histograms.npz.
      4. Write manifest.json and return a JSON summary.

    Output (JSON):
      {
        "status": "ok",
        "data_dir": "<relative output directory>",
        "events_jsonl": "<relative path>",
        "manifest_json": "<relative path>",
        "qa_histograms": "<relative path, only with qa_histos>",
        "n_events": <int>,
        "n_particles": <int>,
        "n_dangling_mothers": <int>,
        "seed": <int>
      }

    Errors:
      Returns BaseTool.format_error JSON for missing parameters, paths escaping
      base_directory, missing run cards, a missing pythia8mc, a failed generator
      initialization and errors raised while generating or writing.
    """
    # --------------------------- Runtime fields --------------------------- #
    data_dir: str = RuntimeField(description="Relative output directory for dataset, e.g. 'data/run001'")
    n_events: int = RuntimeField(description="Number of events to generate")
    generator: str = RuntimeField(default="pythia", description="pythia | box")
    cmnd_path: Optional[str] = RuntimeField(default=None, description="Relative path to Pythia .cmnd run card (pythia only)")
    seed: Optional[int] = RuntimeField(default=None, description="Random seed (optional)")
    qa_histos: bool = RuntimeField(default=True, description="Fill trials, cross-section and pt-hard QA histograms")
    finals_only: bool = RuntimeField(default=False, description="Keep only final-state particles (pythia only)")
    n_particles: int = RuntimeField(default=10, description="Particles per event (box only)")
    pdg: int = RuntimeField(default=211, description="PDG code of the generated particles (box only)")
    # ---------------------------------------------------------------------- #

    # ---------------------------- State fields ---------------------------- #
    base_directory: str = StateField(default=".", description="Base directory for safe path resolution")
    # ---------------------------------------------------------------------- #

    def _setup(self):
        """Setup base directory and validate it exists."""
        self.base_directory = os.path.abspath(self.base_directory)
        if not os.path.isdir(self.base_directory):
            raise ValueError(f"Base directory does not exist or is not a directory: {self.base_directory}")

    def _safe_path(self, rel: Optional[str]) -> Optional[str]:
        """Resolve rel against base_directory, None if it escapes it."""
        if not rel:
            return None
        rel_norm = rel.lstrip(os.sep)
        full = os.path.abspath(os.path.join(self.base_directory, rel_norm))
        if not full.startswith(self.base_directory + os.sep) and full != self.base_directory:
            return None
        return full

    def _finals_only(self) -> bool:
        """finals_only only applies to Pythia, the particle gun emits final-state particles."""
        return bool(self.finals_only) or self.generator == "box"

    def _build_generator(self, cmnd_dst: Optional[str]):
        if self.generator == "pythia":
            return PythiaGenerator(cmnd_path=cmnd_dst, finals_only=self._finals_only())
        return BoxGenerator(n_particles=int(self.n_particles), pdg=int(self.pdg))

    def _run(self) -> str:
        """Run the fast simulation and return JSON summary."""
        try:
            self._setup()
        except Exception as e:
            return self.format_error(error="Path Error", reason=str(e))

        # Check required parameters.
        for key in ("data_dir", "n_events"):
            if getattr(self, key, None) in (None, ""):
                return self.format_error(
                    error="Missing Parameter",
                    reason=f"{key} is required",
                    suggestion="Provide required runtime fields"
                )
        if int(self.n_events) < 0:
            return self.format_error(
                error="Invalid Parameter",
                reason=f"n_events must be non-negative, got {self.n_events}"
            )
        if self.generator not in _GENERATORS:
            return self.format_error(
                error="Invalid Parameter",
                reason=f"Unsupported generator '{self.generator}'",
                suggestion=f"Use one of {list(_GENERATORS)}"
            )
        if self.generator == "pythia" and not self.cmnd_path:
            return self.format_error(
                error="Missing Parameter",
                reason="cmnd_path is required when generator='pythia'",
                suggestion="Provide a Pythia .cmnd run card or use generator='box'"
            )

        outdir = self._safe_path(self.data_dir)
        if not outdir:
            return self.format_error(
                error="Access Denied",
                reason="Path escapes base_directory",
                context=f"data_dir={self.data_dir}",
                suggestion="Use paths inside the allowed base directory"
            )

        cmnd_dst = None
        if self.generator == "pythia":
            cmnd_src = self._safe_path(self.cmnd_path)
            if not cmnd_src:
                return self.format_error(
                    error="Access Denied",
                    reason="cmnd_path escapes base_directory",
                    context=f"cmnd_path={self.cmnd_path}",
                    suggestion="Use paths inside the allowed base directory"
                )
            if not os.path.exists(cmnd_src):
                return self.format_error(
                    error="File Not Found",
                    reason="Run card does not exist",
                    context=f"path={self.cmnd_path}",
                    suggestion="Provide a valid .cmnd file path"
                )
            try:
                _require_pythia()
            except Exception as e:
                return self.format_error(
                    error="Dependency Missing",
                    reason=str(e),
                    suggestion="Install pythia8mc in the current runtime"
                )

        # Create output directory.
        os.makedirs(outdir, exist_ok=True)

        # Copy the run card into the output directory for provenance.
        if self.generator == "pythia":
            cmnd_dst = os.path.join(outdir, "run.cmnd")
            try:
                with open(cmnd_src, "r", encoding="utf-8") as f:
                    card_text = f.read()
                with open(cmnd_dst, "w", encoding="utf-8") as f:
                    f.write(card_text)
            except Exception as e:
                return self.format_error(
                    error="Write Error",
                    reason=str(e),
                    context=f"dst={self.data_dir}/run.cmnd",
                    suggestion="Verify permissions and disk space"
                )

        try:
            generator = self._build_generator(cmnd_dst)
        except ValueError as e:
            return self.format_error(error="Invalid Parameter", reason=str(e))

        # A given seed is installed up front; otherwise the task draws a fresh one.
        process = ProcessContext(SimulationContext(seed=self.seed) if self.seed is not None else None)
        manager = AnalysisManager(process=process)
        task = FastSimulationTask(qa_histos=bool(self.qa_histos), generator=generator)
        manager.add_task(task)

        events_path = os.path.join(outdir, "events.jsonl")
        try:
            # Use larger buffer (256KB) for better I/O performance
            with open(events_path, "w", encoding="utf-8", buffering=262144) as fp:
                writer = GenParticlesWriterTask(fp, finals_only=self._finals_only())
                manager.add_task(writer)
                manager.start_analysis(int(self.n_events), progress=True)
        except Exception as e:
            return self.format_error(
                error="Generation Error",
                reason=str(e),
                context=f"path={events_path}",
                suggestion="Check the generator settings and disk space"
            )

        if int(self.n_events) > 0 and not task.is_initialized:
            return self.format_error(
                error="Initialization Failed",
                reason=f"{self.generator} generator initialization returned false",
                context=f"generator={self.generator}",
                suggestion="Validate beams, processes, and energy in the run card"
            )

        qa_path = None
        if self.qa_histos:
            try:
                qa_path = manager.write_outputs(os.path.join(outdir, "qa_histograms.npz"))
            except Exception as e:
                return self.format_error(
                    error="Write Error",
                    reason=str(e),
                    context=f"path={self.data_dir}/qa_histograms.npz",
                    suggestion="Verify disk space and permissions"
                )

        qa_summary = {}
        if task.hist_trials is not None and task.hist_trials.entries:
            qa_summary = {
                "trials": task.hist_trials.bin_content(1),
                "xsection_mb": task.hist_xsection.bin_content(1),
                "pt_hard_mean": task.hist_pt_hard.mean(),
            }

        # Create manifest file.
        manifest = {
            "schema": config.schema_version,
            "created_utc": datetime.datetime.now(datetime.timezone.utc).isoformat(),
            "inputs": {
                "generator": self.generator,
                **({"run_card": "run.cmnd"} if cmnd_dst else {}),
                "n_events_requested": int(self.n_events),
                "seed": process.simulation.seed if process.simulation is not None else None,
                "qa_histos": bool(self.qa_histos),
                "finals_only": self._finals_only(),
            },
            "outputs": {
                "events_jsonl": "events.jsonl",
                "n_events_written": int(writer.n_written),
                "n_particles": int(writer.n_particles),
                "n_dangling_mothers": int(writer.n_dangling),
                **({"qa_histograms": "qa_histograms.npz"} if qa_path else {}),
                **({"qa": qa_summary} if qa_summary else {}),
                **({"xsec": generator.cross_section()} if isinstance(generator, PythiaGenerator) else {}),
            },
        }
        manifest_path = os.path.join(outdir, "manifest.json")
        try:
            with open(manifest_path, "w", encoding="utf-8") as mf:
                json.dump(manifest, mf, indent=2)
        except Exception as e:
            return self.format_error(
                error="Write Error",
                reason=str(e),
                context=f"path={manifest_path}",
                suggestion="Verify disk space and permissions"
            )

        # Create result object.
        result = {
            "status": "ok",
            "data_dir": os.path.relpath(outdir, self.base_directory),
            "events_jsonl": os.path.relpath(events_path, self.base_directory),
            "manifest_json": os.path.relpath(manifest_path, self.base_directory),
            **({"qa_histograms": os.path.relpath(qa_path, self.base_directory)} if qa_path else {}),
            "n_events": int(writer.n_written),
            "n_particles": int(writer.n_particles),
            "n_dangling_mothers": int(writer.n_dangling),
            "seed": manifest["inputs"]["seed"],
        }
        return json.dumps(result, separators=(",", ":"), ensure_ascii=False)
