from . import jobs, tasks, transcripts

__all__ = ["jobs", "tasks", "transcripts"]
