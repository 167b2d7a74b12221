from fastapi import APIRouter, Depends

from app.api.deps import get_task_board
from app.api.models import JobSnapshotModel, JobSnapshotResponse, MetadataModel, QueueJobModel, QueueStatsData, QueueStatsModel, QueueStatsResponse, TaskModel, TranscriptSummary
from app.services.task_board import TaskBoardService

router = APIRouter()


@router.get("", response_model=QueueStatsResponse)
async def get_queue_stats(task_board: TaskBoardService = Depends(get_task_board)) -> QueueStatsResponse:  # noqa: B008
  """Return in-memory queue statistics."""
  return QueueStatsResponse(data=QueueStatsData(queue_stats=QueueStatsModel.from_stats(task_board.get_queue_stats())))


@router.get("/{job_id}", response_model=JobSnapshotResponse)
async def get_job(  # noqa: B008
  job_id: str,
  task_board: TaskBoardService = Depends(get_task_board),  # noqa: B008
) -> JobSnapshotResponse:
  """Poll a job; tasks are included once processing has completed."""
  snapshot = await task_board.get_job_snapshot(job_id)
  transcript = snapshot.transcript
  data = JobSnapshotModel(
    job_id=snapshot.job_id,
    status=snapshot.status,
    transcript=TranscriptSummary(id=transcript.id, content=transcript.content, created_at=transcript.created_at, updated_at=transcript.updated_at),
    tasks=[TaskModel.from_record(task) for task in snapshot.tasks],
    metadata=MetadataModel.from_metadata(snapshot.metadata),
    error_message=snapshot.error_message,
    queue_status=QueueJobModel.from_job(snapshot.queue_status),
    execution_order=snapshot.execution_order,
  )
  return JobSnapshotResponse(data=data)
