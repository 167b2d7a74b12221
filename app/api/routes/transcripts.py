import logging

from fastapi import APIRouter, Depends, Response, status

from app.api.deps import get_task_board
from app.api.models import SubmitTranscriptRequest, SubmitTranscriptResponse, TaskModel, TranscriptDetailData, TranscriptDetailResponse, TranscriptModel
from app.services.task_board import TaskBoardService

router = APIRouter()
logger = logging.getLogger("app.api.routes.transcripts")


@router.post("", response_model=SubmitTranscriptResponse, status_code=status.HTTP_202_ACCEPTED)
async def submit_transcript(  # noqa: B008
  payload: SubmitTranscriptRequest,
  response: Response,
  task_board: TaskBoardService = Depends(get_task_board),  # noqa: B008
) -> SubmitTranscriptResponse:
  """Submit a transcript for asynchronous task extraction."""
  submission = await task_board.submit(payload.transcript)
  if submission.is_duplicate:
    # Equivalent content was already submitted; hand back its job instead of starting another.
    response.status_code = status.HTTP_200_OK
    return SubmitTranscriptResponse(job_id=submission.job_id, message="Duplicate transcript detected. Returning existing job.", is_duplicate=True)

  logger.info("Transcript accepted as job %s", submission.job_id)
  return SubmitTranscriptResponse(job_id=submission.job_id, message="Transcript submitted successfully. Processing started.", is_duplicate=False)


@router.get("/{transcript_id}", response_model=TranscriptDetailResponse)
async def get_transcript(  # noqa: B008
  transcript_id: str,
  task_board: TaskBoardService = Depends(get_task_board),  # noqa: B008
) -> TranscriptDetailResponse:
  """Fetch a transcript with all of its tasks."""
  transcript, tasks = await task_board.get_transcript_detail(transcript_id)
  return TranscriptDetailResponse(data=TranscriptDetailData(transcript=TranscriptModel.from_record(transcript), tasks=[TaskModel.from_record(task) for task in tasks]))
