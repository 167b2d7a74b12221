import logging

from fastapi import APIRouter, Depends

from app.api.deps import get_task_board
from app.api.models import TaskCompletionData, TaskCompletionResponse, TaskModel, TranscriptTasksData, TranscriptTasksResponse
from app.services.task_board import TaskBoardService

router = APIRouter()
logger = logging.getLogger("app.api.routes.tasks")


@router.patch("/{task_id}/complete", response_model=TaskCompletionResponse)
async def complete_task(  # noqa: B008
  task_id: str,
  task_board: TaskBoardService = Depends(get_task_board),  # noqa: B008
) -> TaskCompletionResponse:
  """Mark a task completed and return the recomputed batch."""
  result = await task_board.complete_task(task_id)
  return TaskCompletionResponse(data=TaskCompletionData(completed_task=TaskModel.from_record(result.completed_task), all_tasks=[TaskModel.from_record(task) for task in result.all_tasks]))


@router.get("/transcript/{transcript_id}", response_model=TranscriptTasksResponse)
async def list_transcript_tasks(  # noqa: B008
  transcript_id: str,
  task_board: TaskBoardService = Depends(get_task_board),  # noqa: B008
) -> TranscriptTasksResponse:
  """List every task extracted from a transcript."""
  tasks = await task_board.list_tasks_for_transcript(transcript_id)
  return TranscriptTasksResponse(data=TranscriptTasksData(tasks=[TaskModel.from_record(task) for task in tasks], count=len(tasks)))
