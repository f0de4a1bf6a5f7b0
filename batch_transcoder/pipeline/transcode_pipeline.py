"""
The test-approve-commit workflow.

States and transitions:

    SAMPLING ──────────► AWAITING_APPROVAL
       ▲                    │        │
       └──── rejected ──────┘        │ approved
                                     ▼
    (no test encode) ──────────► COMMITTING ──► DONE

- SAMPLING: encode a clip from the middle of every source into the sample
  directory, probe the clips and reconcile them with the sources.
- AWAITING_APPROVAL: show the comparison and ask Y/N. Either way the sample
  directory is cleared. On "no" the user picks another profile and sampling
  starts over; the number of rounds is not limited. Rejecting the only
  available profile aborts the run. Invalid answers are asked
  again by the prompter without changing state.
- COMMITTING: encode every media file in full into the mirrored output tree,
  copy the other files when configured to, probe the outputs and reconcile.
- DONE: show and write the final report.

COMMITTING and DONE are each entered exactly once. The sources are probed
once per run and reused by every round and by the commit pass.
"""
from contextlib import contextmanager
from enum import Enum
from pathlib import Path
from typing import Callable, ContextManager, Dict, Iterator, List, Optional, Sequence

from loguru import logger

from ..config.settings import TranscodeConfig
from ..domain.exceptions import TranscodeAborted
from ..domain.media import VideoDescriptor
from ..domain.models import ComparisonRecord, EncodeProfile, EncodeResult
from ..services.comparison_service import merge
from ..services.encoder_service import EncodeInvoker, EncodeJob, ProgressCallback
from ..services.file_processing_service import ProcessFiles
from ..services.logging_service import ComparisonReport, ErrorLog
from ..services.metadata_service import MetadataExtractor, build_extractor
from ..services.preset_service import load_profiles
from ..services.sampling_service import compute_window
from ..utils.shutdown_manager import ShutdownManager

ProgressFactory = Callable[[str], ContextManager[ProgressCallback]]


class PipelineState(Enum):
    SAMPLING = "sampling"
    AWAITING_APPROVAL = "awaiting_approval"
    COMMITTING = "committing"
    DONE = "done"


@contextmanager
def logging_progress(description: str) -> Iterator[ProgressCallback]:
    """Default progress sink: one log line per file."""

    def report(index: int, total: int, source_path: Path):
        logger.info(f"{description} [{index}/{total}]: {source_path.name}")

    yield report


class TranscodePipeline:
    """
    Drives one transcoding run from the first sample to the final report.

    The prompter must provide `select(title, options) -> int` and
    `confirm(question) -> bool`; the presenter must provide
    `show(records, title)`. Both are injected so the loop can run against a
    scripted user.

    Attributes:
        state: The current `PipelineState`.
        profile: The profile used for the next encode.
        rounds: Number of sampling rounds run so far.
        history: Every state the pipeline has been in, in order.
        sample_records: Records of the latest sampling round.
        final_records: Records of the commit pass.
    """

    def __init__(
        self,
        config: TranscodeConfig,
        extractor: MetadataExtractor,
        invoker: EncodeInvoker,
        prompter,
        presenter,
        profiles: Sequence[EncodeProfile],
        report: Optional[ComparisonReport] = None,
        progress_factory: ProgressFactory = logging_progress,
    ):
        if not profiles:
            raise ValueError("At least one encoder profile is required.")

        self.config = config
        self.extractor = extractor
        self.invoker = invoker
        self.prompter = prompter
        self.presenter = presenter
        self.profiles = list(profiles)
        self.report = report
        self.progress_factory = progress_factory

        self.files = ProcessFiles(config.source_dir, config.output_dir)
        self.state = PipelineState.SAMPLING if config.test_encode else PipelineState.COMMITTING
        self.history: List[PipelineState] = [self.state]
        self.rounds = 0
        self.sample_records: List[ComparisonRecord] = []
        self.final_records: List[ComparisonRecord] = []
        self.commit_results: List[EncodeResult] = []
        self._sources: Optional[List[VideoDescriptor]] = None

        self.profile = self.select_profile()

    @classmethod
    def from_config(
        cls,
        config: TranscodeConfig,
        prompter,
        presenter,
        shutdown: Optional[ShutdownManager] = None,
        progress_factory: ProgressFactory = logging_progress,
    ) -> "TranscodePipeline":
        """Builds the pipeline with the real probe, encoder, presets and report."""
        invoker = EncodeInvoker(
            config.encoder_executable,
            fail_fast=config.fail_fast,
            error_log=ErrorLog(config.error_dir),
            shutdown=shutdown,
        )
        return cls(
            config=config,
            extractor=build_extractor(config),
            invoker=invoker,
            prompter=prompter,
            presenter=presenter,
            profiles=load_profiles(config.preset_path),
            report=ComparisonReport(config.effective_report_path),
            progress_factory=progress_factory,
        )

    # --- Helpers ---

    def select_profile(self, after_rejection: bool = False) -> EncodeProfile:
        """
        Picks the profile for the next encode.

        A single profile is used without asking on the first pick. After a
        rejection the user is always asked; with no other profile to offer
        the run is aborted instead of sampling the same profile again.

        Raises:
            TranscodeAborted: If a profile was rejected and it is the only one.
        """
        if after_rejection and len(self.profiles) == 1:
            raise TranscodeAborted(
                f"Profile '{self.profiles[0].profile_name}' was rejected and no other profile is available."
            )
        if len(self.profiles) == 1:
            profile = self.profiles[0]
            logger.info(f"Using the only available profile: {profile}")
            return profile
        index = self.prompter.select("Select an encoder profile", [str(p) for p in self.profiles])
        profile = self.profiles[index]
        logger.info(f"Selected profile: {profile}")
        return profile

    def source_descriptors(self) -> List[VideoDescriptor]:
        """Probes the source media files on first use and caches the result."""
        if self._sources is None:
            self._sources = self.extractor.extract_many(self.files.media_files, self.config.probe_workers)
        return self._sources

    def _run_batch(self, jobs: Sequence[EncodeJob], description: str) -> List[EncodeResult]:
        with self.progress_factory(description) as progress:
            return self.invoker.encode_many(jobs, self.profile, progress=progress)

    def _probe_outputs(self, results: Sequence[EncodeResult]) -> List[VideoDescriptor]:
        outputs = [r.output_path for r in results if r.succeeded]
        return self.extractor.extract_many(outputs, self.config.probe_workers)

    # --- State handlers ---

    def _sample(self) -> PipelineState:
        sources = self.source_descriptors()
        if not sources:
            logger.warning("No media files to sample; continuing with the commit pass.")
            return PipelineState.COMMITTING

        self.rounds += 1
        sample_dir = self.config.sample_dir
        ProcessFiles.clear_directory(sample_dir)
        logger.info(
            f"Sampling round {self.rounds} with '{self.profile.profile_name}': "
            f"{len(sources)} file(s), {self.config.test_encode_seconds}s each."
        )

        jobs = [
            EncodeJob(
                source_path=source.full_path,
                output_path=EncodeInvoker.output_path_for(
                    source.full_path, self.config.source_dir, sample_dir, self.profile
                ),
                window=compute_window(
                    source.duration_seconds, self.config.test_encode_seconds, source.full_path.name
                ),
            )
            for source in sources
        ]
        results = self._run_batch(jobs, f"Sample encode (round {self.rounds})")
        self.sample_records = merge(sources, self._probe_outputs(results))
        return PipelineState.AWAITING_APPROVAL

    def _await_approval(self) -> PipelineState:
        self.presenter.show(
            self.sample_records,
            f"Sample encode {self.rounds}: {self.profile.profile_name}",
        )
        approved = self.prompter.confirm("Approve this profile and encode all files?")
        ProcessFiles.clear_directory(self.config.sample_dir)

        if approved:
            logger.info(f"Profile '{self.profile.profile_name}' approved.")
            return PipelineState.COMMITTING

        logger.info(f"Profile '{self.profile.profile_name}' rejected; choose another one.")
        self.profile = self.select_profile(after_rejection=True)
        return PipelineState.SAMPLING

    def _commit(self) -> PipelineState:
        output_dir = self.config.output_dir
        sources = self.source_descriptors()

        if self.config.copy_everything:
            for path in self.files.other_files:
                self.files.copy_file(path, output_dir)
            logger.info(f"Copied {len(self.files.other_files)} non-media file(s) to {output_dir}")

        jobs = [
            EncodeJob(
                source_path=source.full_path,
                output_path=EncodeInvoker.output_path_for(
                    source.full_path, self.config.source_dir, output_dir, self.profile
                ),
            )
            for source in sources
        ]
        self.commit_results = self._run_batch(jobs, "Encode")
        self.final_records = merge(sources, self._probe_outputs(self.commit_results))
        return PipelineState.DONE

    def _finish(self):
        self.presenter.show(self.final_records, f"Final report: {self.profile.profile_name}")
        if self.report is not None:
            self.report.write(self.final_records, stage="final")

        failed = [r for r in self.commit_results if not r.succeeded]
        if failed:
            logger.warning(
                f"{len(failed)} file(s) could not be encoded; see {self.config.error_dir}"
            )

    # --- Driver ---

    def step(self) -> PipelineState:
        """
        Performs one transition and returns the new state.

        Raises:
            RuntimeError: If the pipeline is already DONE.
        """
        handlers: Dict[PipelineState, Callable[[], PipelineState]] = {
            PipelineState.SAMPLING: self._sample,
            PipelineState.AWAITING_APPROVAL: self._await_approval,
            PipelineState.COMMITTING: self._commit,
        }
        if self.state is PipelineState.DONE:
            raise RuntimeError("The pipeline has already finished.")

        new_state = handlers[self.state]()
        logger.debug(f"Pipeline transition: {self.state.name} -> {new_state.name}")
        self.state = new_state
        self.history.append(new_state)
        return new_state

    def run(self) -> List[ComparisonRecord]:
        """Runs the state machine to completion and returns the final records."""
        logger.info(f"Transcoding {self.config.source_dir} -> {self.config.output_dir}")
        while self.state is not PipelineState.DONE:
            self.step()
        self._finish()
        return self.final_records
