"""CLI commands for the application."""

import json
import click
from flask.cli import AppGroup

from backup_console.errors import AppError
from backup_console.models.backup import BACKUP_TYPES, FORMATS, RestoreRequest
from backup_console.services.container import container

backup_cli = AppGroup('backup', help='Create, list, delete and restore backups.')

@backup_cli.command('create')
@click.option('--type', 'backup_type', type=click.Choice(BACKUP_TYPES), default='manual',
              help='Backup type recorded in the manifest')
def create_backup_command(backup_type):
    """Back up every configured collection."""
    manifest = container().get('export_service').create_backup(backup_type)
    click.echo(
        f"Backup completed: {manifest.collections} collections, "
        f"{manifest.total_records} records in {manifest.duration}ms"
    )
    for entry in manifest.exports:
        click.echo(f"  {entry.collection}: {entry.records} records")

@backup_cli.command('list')
def list_backups_command():
    """List recent backups."""
    backups = container().get('backup_service').list_history()
    if not backups:
        click.echo("No backups found")
        return
    for backup in backups:
        click.echo(
            f"{backup['id']}  {backup['type']:<6}  {backup['collections']} collections  "
            f"{backup['totalRecords']} records  {backup['size']}"
        )

@backup_cli.command('delete')
@click.argument('backup_id')
def delete_backup_command(backup_id):
    """Delete every file belonging to BACKUP_ID."""
    try:
        result = container().get('backup_service').delete_backup(backup_id)
    except AppError as e:
        raise click.ClickException(e.message)
    click.echo(f"Deleted {result.files_deleted} files for {backup_id}")

@backup_cli.command('restore')
@click.argument('backup_id')
@click.option('--format', 'fmt', type=click.Choice(FORMATS), help='Artifact format to restore from')
@click.option('--collection', 'collection_id', help='Restore only this collection')
@click.option('--overwrite', is_flag=True, help='Delete existing rows first')
def restore_backup_command(backup_id, fmt, collection_id, overwrite):
    """Restore BACKUP_ID into the table store."""
    request = RestoreRequest(backup_id=backup_id, format=fmt, collection_id=collection_id, overwrite=overwrite)
    try:
        report = container().get('restore_service').restore(request)
    except AppError as e:
        raise click.ClickException(e.message)
    click.echo(json.dumps(report.to_dict(), indent=2))

def register_commands(app):
    """Register CLI commands with the Flask application."""
    app.cli.add_command(backup_cli)
