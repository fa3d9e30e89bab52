"""Service container for dependency injection."""

import logging
from typing import Dict, Any
from flask import current_app

from backup_console.utils.backup import BackupPaths

logger = logging.getLogger(__name__)

class ServiceContainer:
    """Container for application services.

    One container lives on each Flask app, so services always see that
    app's configuration. Tests swap collaborators in with ``register``.
    """

    def __init__(self, config):
        """Initialize the service container.

        Args:
            config: Flask config mapping
        """
        self.config = config
        self._services: Dict[str, Any] = {}

    def register(self, name: str, service: Any) -> None:
        """Register a service in the container.

        Args:
            name: Name of the service
            service: The service instance
        """
        self._services[name] = service

    def get(self, name: str) -> Any:
        """Get a service from the container by name.

        Args:
            name: Name of the service

        Returns:
            The service instance, or None if not found
        """
        if name in self._services:
            return self._services[name]

        init_method = getattr(self, f"_init_{name}", None)
        if init_method is None:
            return None

        service = init_method()
        self._services[name] = service
        return service

    def _init_backup_paths(self):
        return BackupPaths(self.config['BACKUP_ROOT'])

    def _init_table_store(self):
        """Initialize the table store, Appwrite when configured."""
        if self.config.get('APPWRITE_PROJECT_ID'):
            from backup_console.clients.appwrite_client import AppwriteTableStore
            return AppwriteTableStore(
                endpoint=self.config['APPWRITE_ENDPOINT'],
                project_id=self.config['APPWRITE_PROJECT_ID'],
                api_key=self.config.get('APPWRITE_API_KEY'),
                database_id=self.config['APPWRITE_DATABASE_ID'],
                timeout=self.config.get('APPWRITE_TIMEOUT', 10),
            )

        from backup_console.models.table_store import InMemoryTableStore
        logger.warning("APPWRITE_PROJECT_ID is not set, using an in-memory table store")
        return InMemoryTableStore()

    def _init_audit_service(self):
        from backup_console.services.audit_service import AuditService
        from backup_console.extensions import db
        return AuditService(db)

    def _init_backup_service(self):
        from backup_console.services.backup_service import BackupService
        return BackupService(
            self.get('backup_paths'),
            history_limit=self.config.get('BACKUP_HISTORY_LIMIT', 20),
            audit_service=self.get('audit_service'),
        )

    def _init_restore_service(self):
        from backup_console.services.restore_service import RestoreService
        return RestoreService(
            self.get('table_store'),
            self.get('backup_paths'),
            max_file_size=self.config['MAX_BACKUP_FILE_SIZE'],
            audit_service=self.get('audit_service'),
        )

    def _init_export_service(self):
        from backup_console.services.export_service import ExportService
        formats = [
            fmt for fmt, key in (
                ('sql', 'BACKUP_FORMAT_POSTGRESQL'),
                ('bson', 'BACKUP_FORMAT_BSON'),
                ('excel', 'BACKUP_FORMAT_EXCEL'),
            )
            if self.config.get(key, True)
        ]
        return ExportService(
            self.get('table_store'),
            self.get('backup_paths'),
            collections=self.config.get('BACKUP_COLLECTIONS', []),
            exclude_collections=self.config.get('BACKUP_EXCLUDE_COLLECTIONS', []),
            formats=formats,
            retention=self.config.get('BACKUP_RETENTION_DAILY', 7),
            backup_service=self.get('backup_service'),
            audit_service=self.get('audit_service'),
        )

def init_container(app):
    """Attach a fresh service container to the app."""
    app.extensions['service_container'] = ServiceContainer(app.config)
    return app.extensions['service_container']

def container():
    """Get the service container of the current app.

    Returns:
        ServiceContainer: The service container instance
    """
    return current_app.extensions['service_container']
