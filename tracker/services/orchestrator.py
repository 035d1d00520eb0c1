"""
Analysis Orchestrator

Owns a job's lifecycle and runs its pipeline as a background task:

    content source -> rater fan-out -> consolidation -> report

Progress checkpoints: 10 (processing), 30 (content fetched),
60 (raters answered), 80 (consolidated), 100 (report stored).

Rater failures are absorbed by the fan-out. Content source failures, and any
other pipeline error, fail the job; no partial report is stored.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

from tracker.analyzer import query_raters
from tracker.integrations import (
    CompositeContentSource,
    ContentSource,
    ContentSourceError,
    OpenRouterClient,
    RaterClient,
    WebsiteScraper,
)
from tracker.models import Report
from tracker.persistence import (
    Job,
    JobStatus,
    JobTracker,
    StorageBackend,
    create_storage_backend,
)
from tracker.reporter import generate_report
from tracker.scoring import DEFAULT_LEXICONS, Lexicons, analyze_responses
from tracker.utils.config import Settings

logger = logging.getLogger(__name__)

REPORT_KEY_PREFIX = "reports/"
FAILED_MESSAGE = "Analysis failed"
CANCELLED_MESSAGE = "Analysis cancelled"

ProgressCallback = Callable[[int], Awaitable[Any]]


class AnalysisOrchestrator:
    """
    Coordinates analysis jobs.

    Usage:
        orchestrator = AnalysisOrchestrator(tracker, storage, content_source, rater_client)

        job = await orchestrator.submit("example.com", "url", ["chatgpt", "claude"])
        await orchestrator.wait(job.job_id)
        status = await orchestrator.get_status(job.job_id)
    """

    def __init__(
        self,
        tracker: JobTracker,
        storage: StorageBackend,
        content_source: ContentSource,
        rater_client: RaterClient,
        rater_timeout: float = 60.0,
        lexicons: Lexicons = DEFAULT_LEXICONS,
    ):
        self.tracker = tracker
        self.storage = storage
        self.content_source = content_source
        self.rater_client = rater_client
        self.rater_timeout = rater_timeout
        self.lexicons = lexicons

        self._tasks: Dict[str, asyncio.Task] = {}

    # ========================================================================
    # JOB LIFECYCLE
    # ========================================================================

    async def submit(self, input_value: str, input_type: str, raters: List[str]) -> Job:
        """
        Create a job and schedule its pipeline.

        Returns immediately with the pending job.
        """
        job = await self.tracker.create_job(input_value, input_type, raters)

        task = asyncio.create_task(
            self._run_job(job.job_id, input_value, input_type, raters),
            name=f"analysis-{job.job_id}",
        )
        self._tasks[job.job_id] = task
        task.add_done_callback(lambda _: self._tasks.pop(job.job_id, None))

        return job

    async def wait(self, job_id: str) -> Optional[Job]:
        """Wait for a job's pipeline to finish and return the final job."""
        task = self._tasks.get(job_id)
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)
        return await self.tracker.get_job(job_id)

    async def cancel(self, job_id: str) -> bool:
        """
        Cancel a running job. The job ends as failed.

        Returns:
            False when the job has no running pipeline
        """
        task = self._tasks.get(job_id)
        if task is None or task.done():
            return False

        task.cancel()
        await asyncio.gather(task, return_exceptions=True)

        # A task cancelled before it started never reaches its own handler
        job = await self.tracker.get_job(job_id)
        if job and not job.status.is_terminal:
            await self.tracker.fail_job(job_id, CANCELLED_MESSAGE)

        logger.info(f"Cancelled job {job_id}")
        return True

    async def shutdown(self):
        """Cancel every running pipeline."""
        for job_id in list(self._tasks):
            await self.cancel(job_id)

    @property
    def running_jobs(self) -> int:
        return len(self._tasks)

    async def _run_job(self, job_id: str, input_value: str, input_type: str, raters: List[str]):
        logger.info(f"[{job_id}] Starting analysis for {input_type}: {input_value}")

        async def on_progress(progress: int):
            await self.tracker.update_job(job_id, progress=progress)

        try:
            await self.tracker.update_job(job_id, JobStatus.PROCESSING, 10)

            report = await self.run_analysis(input_value, input_type, raters, on_progress)

            report_key = f"{REPORT_KEY_PREFIX}{job_id}"
            await self.storage.save_json(report_key, report.to_dict())
            await self.tracker.complete_job(job_id, report_key)

            logger.info(f"[{job_id}] Analysis complete (report {report.id})")

        except asyncio.CancelledError:
            await self.tracker.fail_job(job_id, CANCELLED_MESSAGE)
            raise
        except ContentSourceError as e:
            logger.error(f"[{job_id}] Content source failed: {e}")
            await self.tracker.fail_job(job_id, FAILED_MESSAGE)
        except Exception as e:
            logger.exception(f"[{job_id}] Analysis pipeline failed: {e}")
            await self.tracker.fail_job(job_id, FAILED_MESSAGE)

    # ========================================================================
    # PIPELINE
    # ========================================================================

    async def run_analysis(
        self,
        input_value: str,
        input_type: str,
        raters: List[str],
        on_progress: Optional[ProgressCallback] = None,
    ) -> Report:
        """
        Run every stage for one input and return the report.

        Raises:
            ContentSourceError: content could not be fetched
        """
        async def checkpoint(progress: int):
            if on_progress is not None:
                await on_progress(progress)

        content = await self.content_source.fetch_content(input_value, input_type)
        await checkpoint(30)

        opinions = await query_raters(
            self.rater_client,
            content,
            raters,
            timeout=self.rater_timeout,
        )
        await checkpoint(60)

        brand_name = input_value if input_type == "brand" else content.title
        result = analyze_responses(opinions, content, brand_name, self.lexicons)
        await checkpoint(80)

        return generate_report(result, input_value, input_type)

    # ========================================================================
    # STATUS
    # ========================================================================

    async def get_status(self, job_id: str) -> Optional[Dict[str, Any]]:
        """
        Externally visible job status.

        Returns:
            {success, status, progress} plus `result` when completed or
            `error` when failed; None for unknown jobs
        """
        job = await self.tracker.get_job(job_id)
        if job is None:
            return None

        status: Dict[str, Any] = {
            "success": True,
            "status": job.status.value,
            "progress": job.progress,
        }

        if job.status == JobStatus.COMPLETED:
            report = await self.storage.load_json(job.report_key) if job.report_key else None
            if report is None:
                logger.error(f"Report missing for completed job {job_id}")
                status.update(success=False, error=FAILED_MESSAGE)
                return status

            status["result"] = {
                "success": True,
                "report": report,
                "metadata": {"analysisDate": job.created_at.isoformat()},
            }

        elif job.status == JobStatus.FAILED:
            status.update(success=False, error=job.error_message or FAILED_MESSAGE)

        return status

    async def close(self):
        """Cancel running jobs and close owned clients."""
        await self.shutdown()
        for resource in (self.content_source, self.rater_client):
            close = getattr(resource, "close", None)
            if close is not None:
                await close()


def create_orchestrator(
    settings: Settings,
    storage: Optional[StorageBackend] = None,
) -> AnalysisOrchestrator:
    """
    Build an orchestrator with live collaborators from settings.

    Args:
        settings: Application settings
        storage: Storage backend (built from STORAGE_PATH when omitted)
    """
    if not settings.OPENROUTER_API_KEY:
        logger.warning("OPENROUTER_API_KEY not configured - every rater will degrade to defaults")

    storage = storage or create_storage_backend(settings.STORAGE_PATH, settings.STORAGE_COMPRESS)
    scraper = WebsiteScraper(
        timeout=settings.SCRAPER_TIMEOUT,
        text_limit=settings.CONTENT_TEXT_LIMIT,
    )
    rater_client = OpenRouterClient(
        api_key=settings.OPENROUTER_API_KEY or "",
        base_url=settings.OPENROUTER_BASE_URL,
        timeout=settings.RATER_TIMEOUT,
    )

    return AnalysisOrchestrator(
        tracker=JobTracker(storage),
        storage=storage,
        content_source=CompositeContentSource(scraper),
        rater_client=rater_client,
        rater_timeout=settings.RATER_TIMEOUT,
    )
