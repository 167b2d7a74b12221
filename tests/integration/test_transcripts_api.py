"""End-to-end API flows over the in-memory repository and a scripted extractor."""

from __future__ import annotations

import contextlib
from dataclasses import replace

import pytest
from httpx import ASGITransport, AsyncClient

from app.config import get_settings
from app.main import app
from app.services.container import build_services


@contextlib.asynccontextmanager
async def _client_for(repo, extractor):
  """Serve the app over services wired to a specific extractor."""
  services = build_services(replace(get_settings(), min_transcript_chars=50), repo=repo, extractor=extractor)
  app.state.services = services
  try:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
      yield client, services
  finally:
    await services.scheduler.stop()
    del app.state.services


async def _submit_and_wait(client, services, transcript: str) -> dict:
  response = await client.post("/api/transcripts", json={"transcript": transcript})
  assert response.status_code == 202
  await services.scheduler.join()
  poll = await client.get(f"/api/jobs/{response.json()['jobId']}")
  assert poll.status_code == 200
  return poll.json()["data"]


@pytest.mark.anyio
async def test_health(async_client) -> None:
  response = await async_client.get("/health")
  assert response.status_code == 200
  assert response.json()["status"] == "ok"


@pytest.mark.anyio
async def test_submit_then_duplicate_returns_same_job(async_client, services, sample_transcript) -> None:
  first = await async_client.post("/api/transcripts", json={"transcript": sample_transcript})
  assert first.status_code == 202
  body = first.json()
  assert body["success"] is True
  assert body["isDuplicate"] is False
  assert body["jobId"].startswith("job_")

  # Case and surrounding whitespace do not make a submission new.
  second = await async_client.post("/api/transcripts", json={"transcript": f"  {sample_transcript.upper()}\n"})
  assert second.status_code == 200
  assert second.json()["isDuplicate"] is True
  assert second.json()["jobId"] == body["jobId"]

  await services.scheduler.join()
  assert services.scheduler.get_stats().total == 1


@pytest.mark.anyio
@pytest.mark.parametrize(
  "payload",
  [
    {"transcript": "   "},
    {"transcript": "too short"},
    {"transcript": 42},
    {},
    {"transcript": "x" * 60, "extra": True},
  ],
)
async def test_invalid_submissions_are_rejected(async_client, payload) -> None:
  response = await async_client.post("/api/transcripts", json=payload)
  assert response.status_code == 400
  body = response.json()
  assert body["success"] is False
  assert body["error"]["message"]


@pytest.mark.anyio
async def test_short_transcript_message(async_client) -> None:
  response = await async_client.post("/api/transcripts", json={"transcript": "too short"})
  assert response.json()["error"]["message"] == "Transcript must be at least 50 characters long"


@pytest.mark.anyio
async def test_completed_job_exposes_tasks_and_execution_order(async_client, services, sample_transcript) -> None:
  data = await _submit_and_wait(async_client, services, sample_transcript)

  assert data["status"] == "completed"
  assert data["errorMessage"] is None
  assert data["metadata"]["taskCount"] == 3
  assert data["metadata"]["cyclesDetected"] is False
  assert data["queueStatus"]["status"] == "completed"
  assert data["transcript"]["content"] == sample_transcript

  statuses = {task["taskId"]: task["status"] for task in data["tasks"]}
  assert statuses == {"A": "ready", "B": "blocked", "C": "ready"}
  order = data["executionOrder"]
  assert sorted(order) == ["A", "B", "C"]
  assert order.index("A") < order.index("B")


@pytest.mark.anyio
async def test_unknown_job_is_404(async_client) -> None:
  response = await async_client.get("/api/jobs/job_missing")
  assert response.status_code == 404
  assert response.json()["error"]["message"] == "Job not found"


@pytest.mark.anyio
async def test_completing_a_dependency_unblocks_dependents(async_client, services, sample_transcript) -> None:
  await _submit_and_wait(async_client, services, sample_transcript)

  response = await async_client.patch("/api/tasks/A/complete")
  assert response.status_code == 200
  body = response.json()
  assert body["message"] == "Task marked as completed"
  assert body["data"]["completedTask"]["status"] == "completed"
  statuses = {task["taskId"]: task["status"] for task in body["data"]["allTasks"]}
  assert statuses == {"A": "completed", "B": "ready", "C": "ready"}

  # Completing twice is a no-op, not an error.
  again = await async_client.patch("/api/tasks/A/complete")
  assert again.status_code == 200
  assert {task["taskId"]: task["status"] for task in again.json()["data"]["allTasks"]} == statuses


@pytest.mark.anyio
async def test_unknown_task_is_404(async_client) -> None:
  response = await async_client.patch("/api/tasks/nope/complete")
  assert response.status_code == 404
  assert response.json()["error"]["message"] == "Task not found"


@pytest.mark.anyio
async def test_cycle_members_cannot_be_completed(repo, scripted_extractor, sample_transcript) -> None:
  extractor = scripted_extractor(
    lambda _content: [
      {"id": "P", "description": "p", "dependencies": ["Q"]},
      {"id": "Q", "description": "q", "dependencies": ["P"]},
      {"id": "R", "description": "r", "dependencies": []},
    ]
  )
  async with _client_for(repo, extractor) as (client, services):
    data = await _submit_and_wait(client, services, sample_transcript)
    assert data["status"] == "completed"
    assert data["metadata"]["cyclesDetected"] is True
    statuses = {task["taskId"]: task["status"] for task in data["tasks"]}
    assert statuses == {"P": "error", "Q": "error", "R": "ready"}

    response = await client.patch("/api/tasks/P/complete")
    assert response.status_code == 400
    assert "error state" in response.json()["error"]["message"]


@pytest.mark.anyio
async def test_extraction_failure_marks_job_failed(repo, failing_extractor, sample_transcript) -> None:
  async with _client_for(repo, failing_extractor) as (client, services):
    data = await _submit_and_wait(client, services, sample_transcript)
    assert data["status"] == "failed"
    assert data["errorMessage"] == "model unavailable"
    assert data["tasks"] == []
    assert data["executionOrder"] is None

    stats = (await client.get("/api/jobs")).json()["data"]["queueStats"]
    assert stats == {"total": 1, "pending": 0, "processing": 0, "completed": 0, "failed": 1}


@pytest.mark.anyio
async def test_queue_stats_count_finished_jobs(async_client, services, sample_transcript) -> None:
  await _submit_and_wait(async_client, services, sample_transcript)
  response = await async_client.get("/api/jobs")
  assert response.status_code == 200
  assert response.json()["data"]["queueStats"]["completed"] == 1


@pytest.mark.anyio
async def test_transcript_detail_and_task_listing(async_client, services, sample_transcript) -> None:
  data = await _submit_and_wait(async_client, services, sample_transcript)
  transcript_id = data["transcript"]["id"]

  listing = await async_client.get(f"/api/tasks/transcript/{transcript_id}")
  assert listing.status_code == 200
  assert listing.json()["data"]["count"] == 3

  detail = await async_client.get(f"/api/transcripts/{transcript_id}")
  assert detail.status_code == 200
  transcript = detail.json()["data"]["transcript"]
  assert transcript["jobId"] == data["jobId"]
  assert transcript["status"] == "completed"
  assert len(detail.json()["data"]["tasks"]) == 3


@pytest.mark.anyio
async def test_unknown_transcript_is_404(async_client) -> None:
  response = await async_client.get("/api/transcripts/missing")
  assert response.status_code == 404
  assert response.json()["error"]["message"] == "Transcript not found"
  listing = await async_client.get("/api/tasks/transcript/missing")
  assert listing.json()["data"] == {"tasks": [], "count": 0}


@pytest.mark.anyio
async def test_failed_job_does_not_stop_the_queue(repo, scripted_extractor, sample_tasks) -> None:
  """The first job's generator fails; the job queued behind it still completes."""

  def _respond(content: str):
    if content.startswith("Broken"):
      raise RuntimeError("generator returned garbage")
    return [dict(item) for item in sample_tasks]

  failing_first = "Broken meeting notes that the generator cannot turn into any tasks."
  healthy_second = "Alice will draft the launch plan by Friday. Bob reviews it. Carol books the venue."
  async with _client_for(repo, scripted_extractor(_respond)) as (client, services):
    first = await client.post("/api/transcripts", json={"transcript": failing_first})
    second = await client.post("/api/transcripts", json={"transcript": healthy_second})
    assert first.status_code == 202
    assert second.status_code == 202
    await services.scheduler.join()

    failed = (await client.get(f"/api/jobs/{first.json()['jobId']}")).json()["data"]
    completed = (await client.get(f"/api/jobs/{second.json()['jobId']}")).json()["data"]

  assert failed["status"] == "failed"
  assert failed["errorMessage"] == "generator returned garbage"
  assert failed["queueStatus"]["status"] == "failed"
  assert completed["status"] == "completed"
  assert {task["taskId"] for task in completed["tasks"]} == {"A", "B", "C"}
  assert len(await repo.find_tasks_by_transcript(completed["transcript"]["id"])) == 3
  assert services.scheduler.get_stats().failed == 1
  assert services.scheduler.get_stats().completed == 1


@pytest.mark.anyio
async def test_second_batch_reusing_task_ids_still_completes(async_client, services) -> None:
  first = await _submit_and_wait(async_client, services, "Alice will draft the launch plan by Friday. Bob reviews it. Carol books the venue.")
  second = await _submit_and_wait(async_client, services, "Next week: Alice drafts the retro plan, Bob reviews it, Carol books a room.")

  assert first["status"] == "completed"
  assert second["status"] == "completed"
  first_ids = {task["taskId"] for task in first["tasks"]}
  second_ids = {task["taskId"] for task in second["tasks"]}
  assert first_ids == {"A", "B", "C"}
  assert len(second_ids) == 3
  assert not first_ids & second_ids
