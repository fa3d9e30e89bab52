"""Scheduled background jobs."""

from backup_console.tasks.backup_tasks import run_scheduled_backup, setup_backup_jobs, start_scheduler

__all__ = ["run_scheduled_backup", "setup_backup_jobs", "start_scheduler"]
