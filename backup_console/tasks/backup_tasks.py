"""Scheduled backup tasks."""

import logging
from backup_console.extensions import scheduler
from backup_console.services.container import container

log = logging.getLogger("backup_tasks")

def run_scheduled_backup(app):
    """Execute the scheduled backup inside the app context."""
    with app.app_context():
        log.info("Starting scheduled backup")
        try:
            manifest = container().get('export_service').create_backup('auto')
        except Exception as e:
            log.error(f"Scheduled backup failed: {str(e)}", exc_info=True)
            return None

        log.info(
            f"Scheduled backup finished: {manifest.collections} collections, "
            f"{manifest.total_records} records"
        )
        return manifest

def setup_backup_jobs(app):
    """Register backup jobs with the scheduler."""
    if not app.config.get('BACKUP_SCHEDULE_ENABLED'):
        app.logger.info("Scheduled backups are disabled")
        return False

    backup_schedule = app.config.get('BACKUP_CRON', '0 2 * * *')

    scheduler.add_job(
        id='scheduled_backup',
        func=run_scheduled_backup,
        args=[app],
        trigger='cron',
        replace_existing=True,
        **parse_cron_expression(backup_schedule)
    )

    app.logger.info(f"Scheduled backup job registered with cron: {backup_schedule}")
    return True

def parse_cron_expression(expression):
    """Parse cron expression into kwargs for APScheduler."""
    parts = expression.split()
    if len(parts) != 5:
        log.warning(f"Invalid cron expression {expression!r}, using daily at 02:00")
        return {'hour': 2, 'minute': 0}

    minute, hour, day, month, day_of_week = parts
    return {
        'minute': minute,
        'hour': hour,
        'day': day,
        'month': month,
        'day_of_week': day_of_week
    }

def start_scheduler(app):
    """Register jobs and start the scheduler if any job was added."""
    if setup_backup_jobs(app) and not scheduler.running:
        scheduler.start()
        log.info("Scheduler started")
