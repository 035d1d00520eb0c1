"""
Tests for the Analysis Orchestrator

End-to-end pipeline runs with an in-memory storage, a fixed content
source and a fake rater client.
"""

import asyncio

import pytest

from conftest import FakeContentSource, FakeRaterClient
from tracker.integrations import ContentSourceError, RaterResponse, resolve_model
from tracker.persistence import JobStatus, JobTracker, MemoryStorage
from tracker.services import AnalysisOrchestrator


class RecordingTracker(JobTracker):
    """Records the progress value after every update."""

    def __init__(self, storage):
        super().__init__(storage)
        self.progress_log = []

    async def update_job(self, job_id, status=None, progress=None):
        job = await super().update_job(job_id, status, progress)
        self.progress_log.append(job.progress)
        return job


class BlockingContentSource:
    """Never returns until cancelled."""

    def __init__(self):
        self.started = asyncio.Event()

    async def fetch_content(self, input_value, input_type):
        self.started.set()
        await asyncio.Event().wait()


def build_orchestrator(content_source, rater_client=None, tracker_cls=JobTracker):
    storage = MemoryStorage()
    return AnalysisOrchestrator(
        tracker=tracker_cls(storage),
        storage=storage,
        content_source=content_source,
        rater_client=rater_client or FakeRaterClient(),
        rater_timeout=1.0,
    )


class TestJobPipeline:
    """Test background job execution."""

    @pytest.mark.asyncio
    async def test_submit_returns_pending_job(self, sample_content):
        orchestrator = build_orchestrator(FakeContentSource(sample_content))

        job = await orchestrator.submit("https://example.com", "url", ["chatgpt"])

        assert job.status == JobStatus.PENDING
        await orchestrator.wait(job.job_id)

    @pytest.mark.asyncio
    async def test_completed_job(self, sample_content):
        orchestrator = build_orchestrator(FakeContentSource(sample_content))

        job = await orchestrator.submit("https://example.com", "url", ["chatgpt", "claude"])
        final = await orchestrator.wait(job.job_id)

        assert final.status == JobStatus.COMPLETED
        assert final.progress == 100
        assert final.report_key == f"reports/{job.job_id}"

        status = await orchestrator.get_status(job.job_id)
        assert status["success"] is True
        assert status["status"] == "completed"
        assert status["progress"] == 100
        report = status["result"]["report"]
        assert report["input_value"] == "https://example.com"
        assert report["summary"]["visibility_score"] == 60
        assert report["strengths"][0]["models"] == ["chatgpt", "claude"]
        assert status["result"]["metadata"]["analysisDate"] == final.created_at.isoformat()

    @pytest.mark.asyncio
    async def test_progress_checkpoints(self, sample_content):
        orchestrator = build_orchestrator(
            FakeContentSource(sample_content), tracker_cls=RecordingTracker
        )

        job = await orchestrator.submit("https://example.com", "url", ["chatgpt"])
        await orchestrator.wait(job.job_id)

        assert orchestrator.tracker.progress_log == [10, 30, 60, 80]
        assert (await orchestrator.tracker.get_job(job.job_id)).progress == 100

    @pytest.mark.asyncio
    async def test_content_source_failure_fails_job(self):
        source = FakeContentSource(error=ContentSourceError("Failed to scrape website: HTTP 404"))
        orchestrator = build_orchestrator(source)

        job = await orchestrator.submit("https://missing.example", "url", ["chatgpt"])
        final = await orchestrator.wait(job.job_id)

        assert final.status == JobStatus.FAILED
        assert final.progress == 100

        status = await orchestrator.get_status(job.job_id)
        assert status == {
            "success": False,
            "status": "failed",
            "progress": 100,
            "error": "Analysis failed",
        }
        assert await orchestrator.storage.list_keys("reports/") == []

    @pytest.mark.asyncio
    async def test_unexpected_error_fails_job(self, sample_content, monkeypatch):
        orchestrator = build_orchestrator(FakeContentSource(sample_content))

        def explode(*args, **kwargs):
            raise RuntimeError("bad report")

        monkeypatch.setattr("tracker.services.orchestrator.generate_report", explode)

        job = await orchestrator.submit("https://example.com", "url", ["chatgpt"])
        final = await orchestrator.wait(job.job_id)

        assert final.status == JobStatus.FAILED
        assert final.error_message == "Analysis failed"

    @pytest.mark.asyncio
    async def test_all_raters_failing_still_completes(self, sample_content):
        client = FakeRaterClient(default=RaterResponse(status_code=503, body="unavailable"))
        orchestrator = build_orchestrator(FakeContentSource(sample_content), client)

        job = await orchestrator.submit("https://example.com", "url", ["chatgpt", "claude"])
        final = await orchestrator.wait(job.job_id)

        assert final.status == JobStatus.COMPLETED
        report = (await orchestrator.get_status(job.job_id))["result"]["report"]
        assert report["summary"]["visibility_score"] == 0
        assert report["strengths"] == []
        assert set(report["model_comparison"]["model_breakdown"]) == {"chatgpt", "claude"}

    @pytest.mark.asyncio
    async def test_one_failing_rater_is_absorbed(self, sample_content):
        client = FakeRaterClient(responses={resolve_model("claude"): RuntimeError("boom")})
        orchestrator = build_orchestrator(FakeContentSource(sample_content), client)

        job = await orchestrator.submit("https://example.com", "url", ["chatgpt", "claude"])
        await orchestrator.wait(job.job_id)

        report = (await orchestrator.get_status(job.job_id))["result"]["report"]
        assert report["summary"]["visibility_score"] == 30

    @pytest.mark.asyncio
    async def test_invalid_json_rater_is_absorbed(self, sample_content):
        client = FakeRaterClient(responses={
            resolve_model("gemini"): RaterResponse(status_code=200, body="I think the site is great"),
        })
        orchestrator = build_orchestrator(FakeContentSource(sample_content), client)

        job = await orchestrator.submit("https://example.com", "url", ["chatgpt", "gemini"])
        final = await orchestrator.wait(job.job_id)

        assert final.status == JobStatus.COMPLETED
        report = (await orchestrator.get_status(job.job_id))["result"]["report"]
        assert report["strengths"] == [
            {"text": "Clear pricing", "frequency": 1, "models": ["chatgpt"]}
        ]
        assert report["model_comparison"]["model_breakdown"]["gemini"]["visibility_score"] == 0

    @pytest.mark.asyncio
    async def test_brand_job_uses_brand_name(self, brand_content):
        source = FakeContentSource(brand_content)
        orchestrator = build_orchestrator(source)

        job = await orchestrator.submit("Acme", "brand", ["chatgpt"])
        await orchestrator.wait(job.job_id)

        assert source.calls == [("Acme", "brand")]
        report = (await orchestrator.get_status(job.job_id))["result"]["report"]
        assert report["input_type"] == "brand"

    @pytest.mark.asyncio
    async def test_concurrent_jobs_are_independent(self, sample_content):
        orchestrator = build_orchestrator(FakeContentSource(sample_content))

        jobs = [
            await orchestrator.submit(f"https://site{i}.example", "url", ["chatgpt"])
            for i in range(3)
        ]
        for job in jobs:
            await orchestrator.wait(job.job_id)

        reports = [
            (await orchestrator.get_status(job.job_id))["result"]["report"] for job in jobs
        ]
        assert [r["input_value"] for r in reports] == [
            "https://site0.example", "https://site1.example", "https://site2.example",
        ]
        assert len({r["id"] for r in reports}) == 3


class TestCancellation:

    @pytest.mark.asyncio
    async def test_cancel_running_job(self):
        source = BlockingContentSource()
        orchestrator = build_orchestrator(source)

        job = await orchestrator.submit("https://slow.example", "url", ["chatgpt"])
        await source.started.wait()

        assert await orchestrator.cancel(job.job_id) is True

        final = await orchestrator.tracker.get_job(job.job_id)
        assert final.status == JobStatus.FAILED
        assert final.progress == 100
        status = await orchestrator.get_status(job.job_id)
        assert status["error"] == "Analysis cancelled"
        assert orchestrator.running_jobs == 0

    @pytest.mark.asyncio
    async def test_cancel_before_start(self):
        orchestrator = build_orchestrator(BlockingContentSource())

        job = await orchestrator.submit("https://slow.example", "url", ["chatgpt"])
        cancelled = await orchestrator.cancel(job.job_id)

        assert cancelled is True
        assert (await orchestrator.tracker.get_job(job.job_id)).status == JobStatus.FAILED

    @pytest.mark.asyncio
    async def test_cancel_finished_job(self, sample_content):
        orchestrator = build_orchestrator(FakeContentSource(sample_content))

        job = await orchestrator.submit("https://example.com", "url", ["chatgpt"])
        await orchestrator.wait(job.job_id)

        assert await orchestrator.cancel(job.job_id) is False
        assert await orchestrator.cancel("unknown") is False


class TestStatusAndInline:

    @pytest.mark.asyncio
    async def test_unknown_job_status(self, sample_content):
        orchestrator = build_orchestrator(FakeContentSource(sample_content))

        assert await orchestrator.get_status("does-not-exist") is None

    @pytest.mark.asyncio
    async def test_pending_status_has_no_result(self, sample_content):
        orchestrator = build_orchestrator(BlockingContentSource())

        job = await orchestrator.submit("https://example.com", "url", ["chatgpt"])
        status = await orchestrator.get_status(job.job_id)

        assert status == {"success": True, "status": "pending", "progress": 0}
        await orchestrator.close()

    @pytest.mark.asyncio
    async def test_run_analysis_inline(self, sample_content):
        orchestrator = build_orchestrator(FakeContentSource(sample_content))

        report = await orchestrator.run_analysis("https://example.com", "url", ["chatgpt"])

        assert report.input_value == "https://example.com"
        assert report.summary["visibility_score"] == 60
        assert await orchestrator.tracker.list_jobs() == []

    @pytest.mark.asyncio
    async def test_run_analysis_propagates_content_errors(self):
        orchestrator = build_orchestrator(FakeContentSource(error=ContentSourceError("nope")))

        with pytest.raises(ContentSourceError):
            await orchestrator.run_analysis("https://example.com", "url", ["chatgpt"])
