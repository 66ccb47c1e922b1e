"""Sequential video-to-script orchestration.

The orchestrator drives one item at a time through acquisition, encoding,
analysis and persistence, and owns the in-memory library that a front end
renders. Progress and notifications are published to subscribers so the
orchestrator can run headless.
"""

import logging
import time
from dataclasses import replace
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Set

from .agents import AnalysisInput, AnalysisResult, ScriptAnalysisAgent, ScriptOptimizerAgent
from .config import config
from .errors import PersistenceError, PersistenceWriteFailed, ScriptArchError
from .messages import t
from .models import (
    GUEST_USER_ID,
    AnalysisStatus,
    BatchProgress,
    BatchReport,
    ItemFailure,
    Notification,
    NotificationLevel,
    ScriptAnalysis,
    VideoSource,
    source_name,
)
from .services.encoding import encode_payload
from .services.media import MediaFetcher, is_video_file
from .storage import PersistenceGateway

logger = logging.getLogger(__name__)

ProgressListener = Callable[[BatchProgress], None]
NotificationListener = Callable[[Notification], None]


def format_elapsed(seconds: float) -> str:
    """Format elapsed seconds as mm:ss."""
    mins, secs = divmod(int(seconds), 60)
    return f"{mins:02d}:{secs:02d}"


class OrchestrationSession:
    """Timer and progress for one analyze or optimize run."""

    def __init__(self, total: int, phase: AnalysisStatus, clock: Callable[[], float]) -> None:
        self._clock = clock
        self.started_at = clock()
        self.progress = BatchProgress(phase=phase, current_index=0, total=total)

    @property
    def elapsed(self) -> float:
        """Return seconds since the session started."""
        return self._clock() - self.started_at


class ScriptOrchestrator:
    """Coordinate analysis, optimization and library edits for one user."""

    def __init__(
        self,
        gateway: Optional[PersistenceGateway] = None,
        fetcher: Optional[MediaFetcher] = None,
        analysis_agent: Optional[ScriptAnalysisAgent] = None,
        optimizer_agent: Optional[ScriptOptimizerAgent] = None,
        user_id: Optional[str] = None,
        batch_delay: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            gateway: Persistence gateway. Created if not provided.
            fetcher: Media fetcher. Created if not provided.
            analysis_agent: Analysis agent. Created on first use if not provided.
            optimizer_agent: Optimizer agent. Created on first use if not provided.
            user_id: Signed-in user, or None for guest mode. Defaults to config.user_id.
            batch_delay: Pause between batch items in seconds. Defaults to config.batch_delay.
            sleep: Sleep function used for the pause between items.
            clock: Monotonic clock used for the elapsed-time counter.
        """
        self._gateway = gateway or PersistenceGateway()
        self._fetcher = fetcher or MediaFetcher()
        self._analysis_agent = analysis_agent
        self._optimizer_agent = optimizer_agent
        self._user_id = user_id or config.user_id or GUEST_USER_ID
        self._batch_delay = config.batch_delay if batch_delay is None else batch_delay
        self._sleep = sleep
        self._clock = clock

        self._status = AnalysisStatus.IDLE
        self._session: Optional[OrchestrationSession] = None
        self._saved: List[ScriptAnalysis] = []
        self._current: Optional[ScriptAnalysis] = None
        self._unsynced: Set[str] = set()
        self._progress_listeners: List[ProgressListener] = []
        self._notification_listeners: List[NotificationListener] = []

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def user_id(self) -> str:
        """Return the current owner ID."""
        return self._user_id

    @property
    def is_guest(self) -> bool:
        """Return True in guest mode."""
        return self._user_id == GUEST_USER_ID

    @property
    def status(self) -> AnalysisStatus:
        """Return the current phase."""
        return self._status

    @property
    def progress(self) -> BatchProgress:
        """Return the current progress snapshot."""
        if self._session is None:
            return BatchProgress(phase=self._status)
        return self._session.progress

    @property
    def elapsed(self) -> float:
        """Return seconds since the running session started, or 0 when idle."""
        return self._session.elapsed if self._session else 0.0

    @property
    def saved_scripts(self) -> List[ScriptAnalysis]:
        """Return the library, newest first."""
        return list(self._saved)

    @property
    def current_script(self) -> Optional[ScriptAnalysis]:
        """Return the script being displayed."""
        return self._current

    @property
    def unsynced_ids(self) -> Set[str]:
        """Return IDs of scripts whose last save did not reach their store."""
        return set(self._unsynced)

    def is_synced(self, script_id: str) -> bool:
        """Return True if the script's last save was confirmed."""
        return script_id not in self._unsynced

    def subscribe_progress(self, listener: ProgressListener) -> None:
        """Register a callback for progress snapshots."""
        self._progress_listeners.append(listener)

    def subscribe_notifications(self, listener: NotificationListener) -> None:
        """Register a callback for user-facing notifications."""
        self._notification_listeners.append(listener)

    @property
    def analysis_agent(self) -> ScriptAnalysisAgent:
        """Return the analysis agent, creating it if needed."""
        if self._analysis_agent is None:
            self._analysis_agent = ScriptAnalysisAgent()
        return self._analysis_agent

    @property
    def optimizer_agent(self) -> ScriptOptimizerAgent:
        """Return the optimizer agent, creating it if needed."""
        if self._optimizer_agent is None:
            self._optimizer_agent = ScriptOptimizerAgent()
        return self._optimizer_agent

    # ------------------------------------------------------------------
    # Analysis
    # ------------------------------------------------------------------

    def analyze_files(self, paths: Sequence[Path]) -> BatchReport:
        """Analyze local video files as one batch.

        Files that do not look like videos are skipped before the batch starts.
        """
        accepted = [p for p in paths if is_video_file(p)]
        for skipped in (p for p in paths if not is_video_file(p)):
            logger.warning(f"Skipping non-video file: {skipped}")
        return self.analyze_batch(accepted)

    def analyze_batch(self, sources: Sequence[VideoSource]) -> BatchReport:
        """Analyze sources strictly in order, isolating per-item failures.

        Args:
            sources: Files or URLs to analyze.

        Returns:
            BatchReport listing created scripts and failures.
        """
        total = len(sources)
        report = BatchReport(total=total)
        if total == 0:
            return report

        self._start_session(total, AnalysisStatus.ANALYZING)
        logger.info(f"Starting batch of {total} items")

        for i, source in enumerate(sources):
            name = source_name(source)
            self._update_progress(current_index=i + 1, current_item=source, detail=None)
            self._notify(t("reading_file", index=i + 1, total=total, name=name))

            try:
                result = self._analyze_source(source)
            except ScriptArchError as e:
                self._record_failure(report, name, e.message, type(e).__name__)
            except Exception as e:
                logger.exception(f"Unexpected error processing {name}")
                self._record_failure(report, name, str(e), type(e).__name__)
            else:
                script = self._build_script(result, source)
                self._persist_new(script)
                if not report.scripts:
                    self._current = script
                else:
                    self._notify(t("item_done", name=name))
                report.scripts.append(script)

            if i < total - 1:
                self._sleep(self._batch_delay)

        report.elapsed = self.elapsed
        self._end_session(AnalysisStatus.COMPLETE)

        if report.all_failed:
            self._notify(t("batch_all_failed"), NotificationLevel.ERROR)
        else:
            self._notify(t("batch_done", succeeded=report.succeeded, total=total))
        logger.info(
            f"Batch finished: {report.succeeded}/{total} succeeded "
            f"in {format_elapsed(report.elapsed)}"
        )
        return report

    def analyze_url(self, url: str) -> Optional[ScriptAnalysis]:
        """Analyze a single URL.

        Unlike a batch, a failure moves to ERROR and then straight back to IDLE.

        Returns:
            The new script, or None if analysis failed.
        """
        self._start_session(1, AnalysisStatus.ANALYZING)
        self._update_progress(current_index=1, current_item=url, detail=None)
        self._notify(t("analyzing_url"))

        try:
            result = self._analyze_source(url)
        except Exception as e:
            if not isinstance(e, ScriptArchError):
                logger.exception(f"Unexpected error analyzing {url}")
            message = getattr(e, "message", str(e))
            logger.error(f"Analysis of {url} failed: {message}")
            self._end_session(AnalysisStatus.ERROR)
            self._notify(t("url_failed", url=url, error=message), NotificationLevel.ERROR)
            self._set_status(AnalysisStatus.IDLE)
            return None

        script = self._build_script(result, url)
        self._persist_new(script)
        self._current = script
        self._end_session(AnalysisStatus.COMPLETE)
        self._notify(t("url_saved"))
        return script

    def _analyze_source(self, source: VideoSource) -> AnalysisResult:
        """Run acquisition, encoding and analysis for one item."""
        if isinstance(source, Path):
            payload = self._fetcher.fetch_file(source)
        else:
            payload = self._fetcher.fetch_url(source, on_progress=self._set_detail)

        self._set_detail(t("encoding"))
        encoded = encode_payload(payload)

        return self.analysis_agent.run(
            AnalysisInput(
                video_base64=encoded,
                mime_type=payload.mime_type,
                on_progress=self._set_detail,
            )
        )

    def _build_script(self, result: AnalysisResult, source: VideoSource) -> ScriptAnalysis:
        """Create a new record for a successful analysis."""
        fallback_title = source.name if isinstance(source, Path) else t("url_title")
        return ScriptAnalysis(
            user_id=self._user_id,
            title=result.title or fallback_title,
            video_name=source_name(source),
            tags=[],
            scenes=result.scenes,
        )

    def _record_failure(self, report: BatchReport, name: str, message: str, error_type: str) -> None:
        logger.error(f"Error processing {name}: {message}")
        report.failures.append(ItemFailure(item=name, error_message=message, error_type=error_type))
        self._notify(t("item_failed", name=name, error=message), NotificationLevel.ERROR)

    # ------------------------------------------------------------------
    # Optimization and edits
    # ------------------------------------------------------------------

    def select(self, script_id: str) -> Optional[ScriptAnalysis]:
        """Make a saved script the current one."""
        self._current = self._find(script_id)
        return self._current

    def clear_selection(self) -> None:
        """Show no script and return to IDLE."""
        self._current = None
        self._set_status(AnalysisStatus.IDLE)

    def optimize_current(self) -> Optional[ScriptAnalysis]:
        """Rewrite the current script's spoken lines.

        Returns:
            The updated script, or None if there is no current script or
            optimization failed.
        """
        script = self._current
        if script is None:
            return None

        self._start_session(1, AnalysisStatus.OPTIMIZING)
        self._update_progress(current_index=1, current_item=script.video_name, detail=None)
        try:
            scenes = self.optimizer_agent.run(script)
        except ScriptArchError as e:
            logger.error(f"Optimization of {script.id} failed: {e.message}")
            self._end_session(AnalysisStatus.ERROR)
            self._notify(t("optimize_failed"), NotificationLevel.ERROR)
            return None

        updated = script.with_scenes(scenes)
        self._replace(updated)
        self._end_session(AnalysisStatus.COMPLETE)
        if self._persist(updated, t("save_failed", name=updated.title)):
            self._notify(t("optimized"))
        return updated

    def add_tag(self, tag: str) -> Optional[ScriptAnalysis]:
        """Add a tag to the current script; duplicates and blanks are ignored."""
        if self._current is None:
            return None
        return self._update_tags(self._current.add_tag(tag))

    def remove_tag(self, tag: str) -> Optional[ScriptAnalysis]:
        """Remove a tag from the current script."""
        if self._current is None:
            return None
        return self._update_tags(self._current.remove_tag(tag))

    def _update_tags(self, updated: ScriptAnalysis) -> ScriptAnalysis:
        if updated is self._current:
            return updated
        self._replace(updated)
        self._persist(updated, t("tag_save_failed"))
        return updated

    def delete_script(self, script_id: str) -> None:
        """Delete a script from its store, then from the library.

        Raises:
            PersistenceError: If the store could not delete it. The library is
                left unchanged.
        """
        try:
            self._gateway.delete(script_id, self._user_id)
        except PersistenceError:
            self._notify(t("delete_failed"), NotificationLevel.ERROR)
            raise

        self._saved = [s for s in self._saved if s.id != script_id]
        self._unsynced.discard(script_id)
        if self._current is not None and self._current.id == script_id:
            self._current = None
        self._notify(t("deleted"))

    def retry_unsynced(self) -> int:
        """Save unsynced scripts again.

        Returns:
            Number of scripts that are now synced.
        """
        synced = 0
        for script_id in sorted(self._unsynced):
            script = self._find(script_id)
            if script is None:
                self._unsynced.discard(script_id)
                continue
            try:
                self._gateway.save(script)
            except (PersistenceError, OSError) as e:
                logger.warning(f"Retry of {script_id} failed: {e}")
                continue
            self._unsynced.discard(script_id)
            synced += 1
        return synced

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    def load_library(self) -> List[ScriptAnalysis]:
        """Replace the in-memory library with the owner's stored scripts.

        A remote store that cannot be reached loads as an empty library and
        emits an error notification.
        """
        self._saved = self._gateway.fetch_all(self._user_id, on_error=self._on_load_failed)
        return self.saved_scripts

    def _on_load_failed(self, error: PersistenceError) -> None:
        self._notify(t("load_failed"), NotificationLevel.ERROR)

    def sign_in(self, user_id: str) -> int:
        """Switch to a real user, migrating guest scripts first.

        Returns:
            Number of guest scripts migrated.
        """
        migrated = 0
        try:
            migrated = self._gateway.migrate_guest_to_user(user_id)
        except PersistenceWriteFailed as e:
            migrated = len(e.details.get("written", []))
            logger.error(f"Guest migration failed: {e.message}")
            self._notify(t("migrate_failed"), NotificationLevel.ERROR)

        self._user_id = user_id
        self._current = None
        self._unsynced.clear()
        self.load_library()
        if migrated:
            self._notify(t("migrated", count=migrated))
        return migrated

    def sign_out(self) -> None:
        """Return to guest mode and show the guest library."""
        self._user_id = GUEST_USER_ID
        self._current = None
        self._unsynced.clear()
        self._saved = []
        self._notify(t("signed_out"))
        self.load_library()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _persist_new(self, script: ScriptAnalysis) -> None:
        """Save a new script and put it at the top of the library regardless."""
        self._persist(script, t("save_failed", name=script.video_name))
        self._saved = [script, *self._saved]

    def _persist(self, script: ScriptAnalysis, failure_message: str) -> bool:
        """Save a script; on failure mark it unsynced and notify."""
        try:
            self._gateway.save(script)
        except (PersistenceError, OSError) as e:
            logger.warning(f"Keeping {script.id} unsynced: {e}")
            self._unsynced.add(script.id)
            self._notify(failure_message, NotificationLevel.ERROR)
            return False
        self._unsynced.discard(script.id)
        return True

    def _replace(self, updated: ScriptAnalysis) -> None:
        self._saved = [updated if s.id == updated.id else s for s in self._saved]
        if self._current is not None and self._current.id == updated.id:
            self._current = updated

    def _find(self, script_id: str) -> Optional[ScriptAnalysis]:
        return next((s for s in self._saved if s.id == script_id), None)

    def _start_session(self, total: int, phase: AnalysisStatus) -> None:
        self._session = OrchestrationSession(total, phase, self._clock)
        self._status = phase
        self._emit_progress()

    def _end_session(self, phase: AnalysisStatus) -> None:
        self._session = None
        self._set_status(phase)

    def _set_status(self, phase: AnalysisStatus) -> None:
        self._status = phase
        self._emit_progress()

    def _update_progress(self, **changes) -> None:
        if self._session is None:
            return
        self._session.progress = replace(self._session.progress, **changes)
        self._emit_progress()

    def _set_detail(self, detail: str) -> None:
        logger.debug(detail)
        self._update_progress(detail=detail)

    def _emit_progress(self) -> None:
        snapshot = self.progress
        for listener in self._progress_listeners:
            listener(snapshot)

    def _notify(self, message: str, level: NotificationLevel = NotificationLevel.SUCCESS) -> None:
        notification = Notification(message=message, level=level)
        for listener in self._notification_listeners:
            listener(notification)
