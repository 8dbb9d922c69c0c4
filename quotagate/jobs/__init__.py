"""Background maintenance jobs."""

from quotagate.jobs.sweeper import BucketSweeper

__all__ = ["BucketSweeper"]
