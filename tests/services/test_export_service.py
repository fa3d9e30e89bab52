"""Tests for the ExportService"""

import os
from datetime import datetime
from unittest.mock import MagicMock

import pytest

from backup_console.codecs import get_codec
from backup_console.errors import ValidationError
from backup_console.models.backup import RestoreRequest
from backup_console.models.table_store import InMemoryTableStore
from backup_console.services.backup_service import BackupService
from backup_console.services.export_service import ExportService, export_record
from backup_console.services.restore_service import RestoreService
from backup_console.utils.json_utils import read_json_file

NOW = datetime(2025, 11, 5, 14, 50, 0, 123000)

@pytest.fixture
def export_service(table_store, backup_paths):
    """Create an ExportService with every format enabled"""
    return ExportService(
        table_store,
        backup_paths,
        collections=['user_profiles', 'system_settings', 'notifications'],
        retention=7,
        backup_service=BackupService(backup_paths),
    )

def test_create_manual_backup(export_service, backup_paths):
    """Each non-empty collection gets one artifact per format and a manifest"""
    manifest = export_service.create_backup('manual', now=NOW)

    assert manifest.timestamp == '2025-11-05T14:50:00.123Z'
    assert manifest.type == 'manual'
    assert manifest.collections == 2
    assert manifest.total_records == 3
    assert manifest.collection_names() == ['user_profiles', 'system_settings']
    assert manifest.exports[0].files == {
        'postgresql': 'user_profiles_manual_2025-11-05T14-50-00.sql.gz',
        'bson': 'user_profiles_manual_2025-11-05T14-50-00.bson.gz',
        'excel': 'user_profiles_manual_2025-11-05T14-50-00.xlsx',
    }
    assert sorted(os.listdir(backup_paths.daily_dir)) == [
        'system_settings_manual_2025-11-05T14-50-00.bson.gz',
        'system_settings_manual_2025-11-05T14-50-00.sql.gz',
        'system_settings_manual_2025-11-05T14-50-00.xlsx',
        'user_profiles_manual_2025-11-05T14-50-00.bson.gz',
        'user_profiles_manual_2025-11-05T14-50-00.sql.gz',
        'user_profiles_manual_2025-11-05T14-50-00.xlsx',
    ]

    saved = read_json_file(backup_paths.manifest_path('backup_2025-11-05T14-50-00'))
    assert saved['type'] == 'manual'
    assert saved['totalRecords'] == 3
    assert saved['collections'] == 2

def test_artifacts_hold_export_records(export_service, backup_paths):
    """Each format carries the row id under its own column name"""
    export_service.create_backup('auto', now=NOW)

    sql_rows = get_codec('sql').read(backup_paths.artifact_path('system_settings_2025-11-05T14-50-00.sql.gz'))
    bson_rows = get_codec('bson').read(backup_paths.artifact_path('system_settings_2025-11-05T14-50-00.bson.gz'))

    assert sql_rows[0]['id'] == 's1'
    assert bson_rows[0]['_id'] == 's1'
    assert bson_rows[0]['key'] == 'theme'
    assert 'createdAt' in bson_rows[0]
    assert not any(key.startswith('$') for key in bson_rows[0])

def test_only_enabled_formats(table_store, backup_paths):
    """Disabled formats are not written"""
    service = ExportService(table_store, backup_paths, collections=['system_settings'], formats=['bson'])

    manifest = service.create_backup('manual', now=NOW)

    assert manifest.exports[0].files == {'bson': 'system_settings_manual_2025-11-05T14-50-00.bson.gz'}
    assert os.listdir(backup_paths.daily_dir) == ['system_settings_manual_2025-11-05T14-50-00.bson.gz']

def test_excluded_and_empty_collections_are_skipped(backup_paths):
    """Excluded, empty and unreadable collections produce no export"""
    store = InMemoryTableStore({
        'user_profiles': [{'$id': 'u1', 'name': 'Ada'}],
        'secrets': [{'$id': 'x1', 'value': 'hunter2'}],
        'empty': [],
    })
    service = ExportService(
        store,
        backup_paths,
        collections=['user_profiles', 'secrets', 'empty', 'missing'],
        exclude_collections=['secrets'],
        formats=['bson'],
    )

    manifest = service.create_backup('manual', now=NOW)

    assert manifest.collection_names() == ['user_profiles']

def test_control_characters_do_not_abort_backup(backup_paths):
    """A value a worksheet cannot hold still ends up in every format"""
    store = InMemoryTableStore({
        'notes': [{'$id': 'n1', 'text': 'bad\x0bchar'}],
        'users': [{'$id': 'u1', 'name': 'Ada'}],
    })
    service = ExportService(store, backup_paths, collections=['notes', 'users'])

    manifest = service.create_backup('manual', now=NOW)

    assert manifest.collection_names() == ['notes', 'users']
    assert set(manifest.exports[0].files) == {'postgresql', 'bson', 'excel'}
    assert os.path.exists(backup_paths.manifest_path('backup_2025-11-05T14-50-00'))

def test_failed_format_is_left_out(backup_paths, mocker):
    """One failing format does not stop the other formats or collections"""
    store = InMemoryTableStore({
        'notes': [{'$id': 'n1', 'text': 'hi'}],
        'users': [{'$id': 'u1', 'name': 'Ada'}],
    })
    mocker.patch.object(get_codec('excel'), 'encode', side_effect=ValueError('cannot encode'))
    service = ExportService(store, backup_paths, collections=['notes', 'users'])

    manifest = service.create_backup('manual', now=NOW)

    assert manifest.collection_names() == ['notes', 'users']
    assert manifest.exports[0].files == {
        'postgresql': 'notes_manual_2025-11-05T14-50-00.sql.gz',
        'bson': 'notes_manual_2025-11-05T14-50-00.bson.gz',
    }
    assert not any(name.endswith('.xlsx') for name in os.listdir(backup_paths.daily_dir))

def test_collection_with_no_artifacts_is_left_out(backup_paths, mocker):
    """A collection whose every format fails is not listed in the manifest"""
    store = InMemoryTableStore({'notes': [{'$id': 'n1', 'text': 'hi'}]})
    mocker.patch.object(get_codec('bson'), 'encode', side_effect=ValueError('cannot encode'))
    service = ExportService(store, backup_paths, collections=['notes'], formats=['bson'])

    manifest = service.create_backup('manual', now=NOW)

    assert manifest.exports == []
    assert manifest.total_records == 0
    assert os.listdir(backup_paths.daily_dir) == []

def test_invalid_backup_type(export_service):
    """Only auto and manual backups exist"""
    with pytest.raises(ValidationError):
        export_service.create_backup('weekly')

def test_auto_backup_replaces_same_day_auto_backup(export_service, backup_paths):
    """A second automatic run on the same day removes the first"""
    export_service.create_backup('auto', now=datetime(2025, 11, 5, 2, 0, 0))
    export_service.create_backup('manual', now=datetime(2025, 11, 5, 9, 0, 0))
    export_service.create_backup('auto', now=datetime(2025, 11, 5, 14, 0, 0))

    assert sorted(os.listdir(backup_paths.logs_dir)) == [
        'backup_2025-11-05T09-00-00.json',
        'backup_2025-11-05T14-00-00.json',
    ]
    daily = os.listdir(backup_paths.daily_dir)
    assert not any('2025-11-05T02-00-00' in name for name in daily)
    assert len([name for name in daily if 'manual_' in name]) == 6

def test_retention_keeps_newest_backups(table_store, backup_paths):
    """Backups beyond the retention count are deleted oldest first"""
    service = ExportService(
        table_store,
        backup_paths,
        collections=['system_settings'],
        formats=['bson'],
        retention=2,
        backup_service=BackupService(backup_paths),
    )

    for day in (1, 2, 3):
        service.create_backup('auto', now=datetime(2025, 11, day, 2, 0, 0))

    assert sorted(os.listdir(backup_paths.logs_dir)) == [
        'backup_2025-11-02T02-00-00.json',
        'backup_2025-11-03T02-00-00.json',
    ]
    assert not any('2025-11-01' in name for name in os.listdir(backup_paths.daily_dir))

def test_backup_is_audited(table_store, backup_paths):
    """Start and completion events are recorded"""
    audit_service = MagicMock()
    service = ExportService(table_store, backup_paths, collections=['system_settings'],
                            formats=['bson'], audit_service=audit_service)

    service.create_backup('manual', now=NOW)

    actions = [call.args[0] for call in audit_service.log_system_event.call_args_list]
    assert actions == ['BACKUP_STARTED', 'BACKUP_COMPLETED']

def test_backup_then_restore(export_service, table_store, backup_paths):
    """Restoring a fresh backup with overwrite reproduces the table"""
    before = {row['$id']: row['name'] for row in table_store.list_rows('user_profiles')}
    export_service.create_backup('manual', now=NOW)
    table_store.create_row('user_profiles', 'u9', {'name': 'Intruder'})

    report = RestoreService(table_store, backup_paths, max_file_size=52428800).restore(
        RestoreRequest(backup_id='backup_2025-11-05T14-50-00', collection_id='user_profiles', overwrite=True)
    )

    assert report.results[0].records == 2
    assert {row['$id']: row['name'] for row in table_store.list_rows('user_profiles')} == before

def test_export_record():
    """System fields are renamed or dropped"""
    row = {
        '$id': 'u1',
        '$createdAt': '2025-01-01T00:00:00.000Z',
        '$updatedAt': '2025-01-02T00:00:00.000Z',
        '$permissions': ['read("any")'],
        'name': 'Ada',
    }

    assert export_record(row, 'id') == {
        'id': 'u1',
        'name': 'Ada',
        'createdAt': '2025-01-01T00:00:00.000Z',
        'updatedAt': '2025-01-02T00:00:00.000Z',
    }

def test_export_record_keeps_row_id_over_user_column():
    """A user column named like the id column cannot replace the row id"""
    row = {'$id': 'u1', 'id': 'legacy-7', '_id': 'mongo-3', 'name': 'Ada'}

    assert export_record(row, 'id') == {'id': 'u1', '_id': 'mongo-3', 'name': 'Ada'}
    assert export_record(row, '_id') == {'_id': 'u1', 'id': 'legacy-7', 'name': 'Ada'}
