from .runner import BackgroundJobRunner, get_job_runner

__all__ = [
    "BackgroundJobRunner",
    "get_job_runner",
]
