"""Tests for backup naming, size and compression helpers"""

import os

import pytest

from backup_console.errors import BackupFormatError, ValidationError
from backup_console.utils.backup import (
    BackupPaths,
    artifact_filename,
    backup_id_for_token,
    collection_artifacts,
    files_containing,
    list_files,
    timestamp_token,
    token_from_backup_id,
)
from backup_console.utils.compression import decompress
from backup_console.utils.file_validation import (
    FileSizeError,
    format_file_size,
    validate_backup_file_size,
)

@pytest.mark.parametrize('timestamp,expected', [
    ('2025-11-05T14:50:00.123Z', '2025-11-05T14-50-00'),
    ('2025-11-05T14:50:00Z', '2025-11-05T14-50-00'),
    ('2025-11-05T14:50:00', '2025-11-05T14-50-00'),
])
def test_timestamp_token(timestamp, expected):
    """Tokens are filename safe and second precise"""
    assert timestamp_token(timestamp) == expected

def test_tokens_sort_chronologically():
    """Lexicographic order of tokens matches time order"""
    timestamps = ['2025-11-05T09:00:00.000Z', '2025-11-05T14:50:00.000Z', '2025-12-01T00:00:00.000Z']
    tokens = [timestamp_token(ts) for ts in timestamps]

    assert sorted(tokens) == tokens

def test_backup_id_round_trip():
    """Ids are the token with a backup_ prefix"""
    assert backup_id_for_token('2025-11-05T14-50-00') == 'backup_2025-11-05T14-50-00'
    assert token_from_backup_id('backup_2025-11-05T14-50-00') == '2025-11-05T14-50-00'

@pytest.mark.parametrize('backup_id', [None, '', 'backup_', 'backup_../x', 'a/b', 'a\\b'])
def test_token_from_invalid_backup_id(backup_id):
    """Empty and path-like ids are rejected"""
    with pytest.raises(ValidationError):
        token_from_backup_id(backup_id)

def test_artifact_filename():
    """Manual backups carry a manual_ marker before the token"""
    assert artifact_filename('users', '2025-11-05T14-50-00', '.xlsx') == 'users_2025-11-05T14-50-00.xlsx'
    assert artifact_filename('users', '2025-11-05T14-50-00', '.sql.gz', manual=True) == \
        'users_manual_2025-11-05T14-50-00.sql.gz'

def test_paths_ensure(tmp_path):
    """Daily and logs directories are created"""
    paths = BackupPaths(str(tmp_path / 'backup'))

    paths.ensure()

    assert os.path.isdir(paths.daily_dir)
    assert os.path.isdir(paths.logs_dir)
    assert paths.manifest_path('backup_x') == os.path.join(paths.logs_dir, 'backup_x.json')

def test_list_files(tmp_path):
    """Only files are listed, sorted; a missing directory is empty"""
    (tmp_path / 'b.txt').write_text('b')
    (tmp_path / 'a.txt').write_text('a')
    (tmp_path / 'sub').mkdir()

    assert list_files(str(tmp_path)) == ['a.txt', 'b.txt']
    assert list_files(str(tmp_path / 'missing')) == []

def test_files_containing(tmp_path):
    """Every fragment must appear in the name"""
    for name in ('users_T1.xlsx', 'users_T2.xlsx', 'posts_T1.xlsx'):
        (tmp_path / name).write_text('x')

    assert files_containing(str(tmp_path), 'users', 'T1') == ['users_T1.xlsx']
    assert files_containing(str(tmp_path), 'T1') == ['posts_T1.xlsx', 'users_T1.xlsx']

def test_collection_artifacts(tmp_path):
    """Names must start with the collection followed by the token"""
    for name in ('logs_T1.xlsx', 'logs_manual_T1.bson.gz', 'audit_logs_T1.xlsx',
                 'logs_archive_T1.xlsx', 'logs_T2.xlsx'):
        (tmp_path / name).write_text('x')

    assert collection_artifacts(str(tmp_path), 'logs', 'T1') == ['logs_T1.xlsx', 'logs_manual_T1.bson.gz']
    assert collection_artifacts(str(tmp_path), 'audit_logs', 'T1') == ['audit_logs_T1.xlsx']
    assert collection_artifacts(str(tmp_path), 'logs_archive', 'T1') == ['logs_archive_T1.xlsx']

def test_validate_backup_file_size():
    """Files over the limit raise with both sizes"""
    validate_backup_file_size(52428800, 52428800)

    with pytest.raises(FileSizeError) as exc_info:
        validate_backup_file_size(60 * 1024 * 1024, 50 * 1024 * 1024)

    error = exc_info.value
    assert error.status_code == 413
    assert error.message == 'File size (60.00MB) exceeds maximum allowed size (50.00MB) for backup file'
    assert error.details == {'actualSize': 62914560, 'maxSize': 52428800}

@pytest.mark.parametrize('num_bytes,expected', [
    (0, '0 Bytes'),
    (512, '512 Bytes'),
    (1536, '1.5 KB'),
    (1048576, '1 MB'),
    (5 * 1024 ** 4, '5120 GB'),
])
def test_format_file_size(num_bytes, expected):
    """Sizes are shown in the largest sensible unit"""
    assert format_file_size(num_bytes) == expected

def test_decompress_rejects_plain_bytes():
    """Data that is not gzip is a format error"""
    with pytest.raises(BackupFormatError):
        decompress(b'plain text')
