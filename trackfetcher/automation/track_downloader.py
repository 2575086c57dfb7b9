"""Per-track download loop for one mix.

The mixer has a single global "solo" state and a single download button
that downloads whatever is currently audible.  To get one file per track,
each track is soloed, the download button clicked, the file awaited and
renamed, and the solo released, strictly one track at a time.

Each track runs through an explicit state machine::

    RESOLVE -> CHECK_EXISTING -> ISOLATE -> TRIGGER -> AWAIT
            -> FINALIZE -> DEISOLATE -> DECIDE -> DONE

``CHECK_EXISTING`` short-circuits to ``DONE`` when the track's file is
already on disk.  ``DECIDE`` is only entered after a timed-out download;
the operator's Retry goes back to ``RESOLVE`` for the same track, Skip
marks the track failed.  Track rows are re-queried on every pass because
soloing re-renders the mixer and invalidates old element handles.
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from automation import site
from automation.atomic_io import atomic_rename
from automation.completion_detector import await_new_file, new_partial_files, snapshot
from automation.errors import SelectorMissing
from automation.mixer_handle import TRACK_ROWS
from automation.naming import target_file_name

logger = logging.getLogger("trackfetcher.automation.tracks")

TRACK_CAPTIONS = [".track__caption", ".track__name", ".track__title", ".name"]
SOLO_BUTTON = "button.track__solo"

TRACKS_WAIT_MS = 60000
SCROLL_PAUSE_MS = 250
SETTLE_MS = 1000
DOWNLOAD_TIMEOUT_S = 180


class TrackStep(Enum):
    RESOLVE = "resolve"
    CHECK_EXISTING = "check_existing"
    ISOLATE = "isolate"
    TRIGGER = "trigger"
    AWAIT = "await"
    FINALIZE = "finalize"
    DEISOLATE = "deisolate"
    DECIDE = "decide"
    DONE = "done"


class TrackStatus(Enum):
    COMPLETED = "completed"
    FAILED = "failed"


class AttemptOutcome(Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    TIMED_OUT = "timed_out"


class Decision(Enum):
    """Operator answer after a timed-out download."""
    RETRY = "Retry"
    SKIP = "Skip"


@dataclass
class TrackRef:
    """A track row as resolved from the live mixer."""
    index: int
    display_name: str
    isolate_control: object = None


@dataclass
class DownloadAttempt:
    track_index: int
    target_file_name: str
    deadline: float
    outcome: AttemptOutcome = AttemptOutcome.PENDING
    file: Path | None = None


@dataclass
class TrackOutcome:
    """Final result for one track."""
    index: int
    display_name: str
    file_name: str
    status: TrackStatus
    attempts: int = 0
    path: Path | None = None
    already_present: bool = False


@dataclass
class TrackRun:
    """Mutable state of one track while it moves through the steps."""
    index: int
    step: TrackStep = TrackStep.RESOLVE
    track: TrackRef | None = None
    file_name: str = ""
    isolated: bool = False
    before: frozenset = field(default_factory=frozenset)
    attempt: DownloadAttempt | None = None
    attempts: int = 0
    status: TrackStatus | None = None
    path: Path | None = None
    already_present: bool = False

    def outcome(self) -> TrackOutcome:
        return TrackOutcome(
            index=self.index,
            display_name=self.track.display_name if self.track else "",
            file_name=self.file_name,
            status=self.status or TrackStatus.FAILED,
            attempts=self.attempts,
            path=self.path,
            already_present=self.already_present,
        )


def _skip_always(display_name: str) -> Decision:
    return Decision.SKIP


class TrackDownloader:
    """Downloads every track of the mix behind *handle* into *output_dir*."""

    def __init__(self, session, handle, output_dir, decide=None,
                 progress_fn=None, on_track_done=None,
                 download_timeout_s: float = DOWNLOAD_TIMEOUT_S,
                 settle_ms: int = SETTLE_MS,
                 detector=await_new_file, clock=time.monotonic):
        """
        Args:
            session: BrowserSession on the mix page.
            handle: MixerHandle from locate_mixer().
            output_dir: Folder the browser downloads into; final files land here.
            decide: Callable(track_name) -> Decision, asked after a timeout.
                Defaults to always skipping.
            progress_fn: Optional callable(str) for status updates.
            on_track_done: Optional callable(TrackOutcome) after each track.
            download_timeout_s: How long to wait for each file.
            settle_ms: Pause after soloing, for the mixer to apply it.
            detector: Completion detector, see await_new_file().
            clock: Monotonic time source shared with the detector.
        """
        self.session = session
        self.handle = handle
        self.output_dir = Path(output_dir)
        self._decide = decide or _skip_always
        self._progress = progress_fn or (lambda msg: None)
        self._on_track_done = on_track_done or (lambda outcome: None)
        self.download_timeout_s = download_timeout_s
        self.settle_ms = settle_ms
        self._detector = detector
        self._clock = clock
        self._handlers = {
            TrackStep.RESOLVE: self._resolve,
            TrackStep.CHECK_EXISTING: self._check_existing,
            TrackStep.ISOLATE: self._isolate,
            TrackStep.TRIGGER: self._trigger,
            TrackStep.AWAIT: self._await,
            TrackStep.FINALIZE: self._finalize,
            TrackStep.DEISOLATE: self._deisolate,
            TrackStep.DECIDE: self._decide_next,
        }

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def track_count(self) -> int:
        """Wait for the track rows and return how many there are.

        Raises:
            SelectorMissing: If the mixer shows no tracks.
        """
        if self.handle.wait_for(TRACK_ROWS, TRACKS_WAIT_MS) is None:
            raise SelectorMissing("No tracks found in the mixer", selector=TRACK_ROWS)
        return len(self.handle.tracks())

    def download_all_tracks(self) -> list[TrackOutcome]:
        """Process every track in mixer order.

        Raises:
            SelectorMissing: If the tracks or the download button disappear.
                A timed-out download never raises; it goes to the operator.
        """
        total = self.track_count()
        logger.info(f"Found {total} tracks to download into {self.output_dir}")
        self.output_dir.mkdir(parents=True, exist_ok=True)

        outcomes = []
        for index in range(total):
            outcome = self.process_track(index)
            outcomes.append(outcome)
            self._on_track_done(outcome)
        return outcomes

    def process_track(self, index: int) -> TrackOutcome:
        """Run the state machine for the track at *index*."""
        run = TrackRun(index)
        try:
            while run.step is not TrackStep.DONE:
                logger.debug(f"Track {index + 1}: {run.step.value}")
                run.step = self._handlers[run.step](run)
        except Exception:
            if run.isolated:
                try:
                    self._release_solo(run)
                except Exception as e:
                    logger.warning(f"Could not un-solo track {index + 1} after error: {e}")
            raise
        outcome = run.outcome()
        logger.info(
            f"Track {index + 1} '{outcome.display_name}': {outcome.status.value}"
            f"{' (already present)' if outcome.already_present else ''}"
        )
        return outcome

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _row(self, index: int):
        rows = self.handle.tracks()
        if index >= len(rows):
            raise SelectorMissing(
                f"Track {index + 1} is no longer in the mixer ({len(rows)} rows)",
                selector=TRACK_ROWS,
            )
        return rows[index]

    def _caption(self, row, index: int) -> str:
        for selector in TRACK_CAPTIONS:
            element = row.query_selector(selector)
            if element is not None:
                name = self.handle.text_of(element)
                if name:
                    return name
        return f"track_{index + 1}"

    def _resolve(self, run: TrackRun) -> TrackStep:
        row = self._row(run.index)
        name = self._caption(row, run.index)
        run.track = TrackRef(run.index, name, row.query_selector(SOLO_BUTTON))
        run.file_name = target_file_name(run.index, name)
        return TrackStep.CHECK_EXISTING

    def _check_existing(self, run: TrackRun) -> TrackStep:
        path = self.output_dir / run.file_name
        if path.exists():
            self._progress(f"Skipping \"{run.file_name}\" (already exists)")
            run.status = TrackStatus.COMPLETED
            run.path = path
            run.already_present = True
            return TrackStep.DONE
        return TrackStep.ISOLATE

    def _isolate(self, run: TrackRun) -> TrackStep:
        run.attempts += 1
        control = run.track.isolate_control
        if control is None:
            logger.warning(
                f"No solo button for track '{run.track.display_name}'; "
                "downloading without isolation"
            )
        else:
            self._progress(f"Solo \"{run.track.display_name}\"")
            control.scroll_into_view_if_needed()
            self.session.sleep(SCROLL_PAUSE_MS)
            control.click()
            run.isolated = True
        self.session.sleep(self.settle_ms)
        return TrackStep.TRIGGER

    def _trigger(self, run: TrackRun) -> TrackStep:
        control = site.find_download_control(self.session, self.handle)
        run.before = snapshot(self.output_dir)
        run.attempt = DownloadAttempt(
            track_index=run.index,
            target_file_name=run.file_name,
            deadline=self._clock() + self.download_timeout_s,
        )
        self._progress(f"Downloading \"{run.track.display_name}\"")
        self.handle.activate(control)
        return TrackStep.AWAIT

    def _await(self, run: TrackRun) -> TrackStep:
        attempt = run.attempt
        found = self._detector(self.output_dir, run.before, attempt.deadline)
        if found is None:
            attempt.outcome = AttemptOutcome.TIMED_OUT
        else:
            attempt.outcome = AttemptOutcome.COMPLETED
            attempt.file = Path(found)
        site.dismiss_modal(self.session)
        return TrackStep.FINALIZE

    def _finalize(self, run: TrackRun) -> TrackStep:
        attempt = run.attempt
        if attempt.outcome is AttemptOutcome.COMPLETED:
            target = self.output_dir / run.file_name
            self._progress(f"Creating \"{run.file_name}\"")
            atomic_rename(attempt.file, target)
            run.status = TrackStatus.COMPLETED
            run.path = target
        else:
            logger.warning(f"Download for '{run.track.display_name}' timed out")
            for partial in new_partial_files(self.output_dir, run.before):
                try:
                    partial.unlink()
                    logger.info(f"Cleaned up temporary file {partial.name}")
                except FileNotFoundError:
                    logger.debug(f"Temporary file {partial.name} already gone")
        return TrackStep.DEISOLATE

    def _deisolate(self, run: TrackRun) -> TrackStep:
        if run.isolated:
            self._release_solo(run)
        if run.attempt.outcome is AttemptOutcome.TIMED_OUT:
            return TrackStep.DECIDE
        return TrackStep.DONE

    def _decide_next(self, run: TrackRun) -> TrackStep:
        decision = self._decide(run.track.display_name)
        if decision is Decision.RETRY:
            logger.info(f"Retrying download for '{run.track.display_name}'")
            return TrackStep.RESOLVE
        logger.info(f"Skipping track '{run.track.display_name}'")
        run.status = TrackStatus.FAILED
        return TrackStep.DONE

    def _release_solo(self, run: TrackRun) -> None:
        """Click the track's solo button again, re-resolving it first."""
        try:
            control = self._row(run.index).query_selector(SOLO_BUTTON)
        except SelectorMissing:
            control = None
        control = control or run.track.isolate_control
        if control is None:
            logger.warning(f"Solo button for track {run.index + 1} vanished; cannot un-solo")
        else:
            control.scroll_into_view_if_needed()
            control.click()
        run.isolated = False


def download_all_tracks(session, handle, output_dir, decide=None, **kwargs) -> list[TrackOutcome]:
    """Convenience wrapper around ``TrackDownloader(...).download_all_tracks()``."""
    return TrackDownloader(session, handle, output_dir, decide=decide, **kwargs).download_all_tracks()
