import pytest

from backup_console import create_app
from backup_console.codecs import get_codec
from backup_console.extensions import db as _db
from backup_console.models.backup import MANIFEST_FILE_KEYS, BackupManifest, ExportEntry
from backup_console.models.table_store import InMemoryTableStore
from backup_console.services.container import container
from backup_console.utils.backup import BackupPaths, artifact_filename, backup_id_for_token
from backup_console.utils.json_utils import write_json_file

API_TOKEN = 'test-token'


@pytest.fixture
def backup_root(tmp_path):
    return str(tmp_path / 'backup')


@pytest.fixture
def backup_paths(backup_root):
    paths = BackupPaths(backup_root)
    paths.ensure()
    return paths


@pytest.fixture
def table_store():
    """Table store preloaded with two small tables."""
    return InMemoryTableStore({
        'user_profiles': [
            {'$id': 'u1', 'name': 'Ada', 'email': 'ada@example.com'},
            {'$id': 'u2', 'name': 'Grace', 'email': 'grace@example.com'},
        ],
        'system_settings': [
            {'$id': 's1', 'key': 'theme', 'value': 'dark'},
        ],
    })


@pytest.fixture
def app(backup_root, table_store):
    """Create and configure a Flask app for testing."""
    app = create_app({
        'TESTING': True,
        'SECRET_KEY': 'test-key',
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'ADMIN_API_TOKEN': API_TOKEN,
        'RATELIMIT_ENABLED': False,
        'APPWRITE_PROJECT_ID': None,
        'BACKUP_ROOT': backup_root,
        'BACKUP_COLLECTIONS': ['user_profiles', 'system_settings', 'notifications'],
        'BACKUP_SCHEDULE_ENABLED': False,
    })

    with app.app_context():
        container().register('table_store', table_store)
        yield app
        _db.session.remove()


@pytest.fixture
def client(app):
    """A test client for the app."""
    return app.test_client()


@pytest.fixture
def runner(app):
    """A test CLI runner for the app."""
    return app.test_cli_runner()


@pytest.fixture
def api_headers():
    return {'Authorization': f'Bearer {API_TOKEN}'}


@pytest.fixture
def make_backup(backup_paths):
    """Write artifacts and a manifest the way a backup run does.

    Returns a function taking a token and a mapping of collection to rows.
    """
    def _make_backup(token, collections, formats=('sql', 'bson', 'excel'), manual=False,
                     backup_type=None, timestamp=None):
        exports = []
        for collection_id, rows in collections.items():
            files = {}
            for fmt in formats:
                codec = get_codec(fmt)
                filename = artifact_filename(collection_id, token, codec.extension, manual=manual)
                codec.write(backup_paths.artifact_path(filename), rows, collection_id)
                files[MANIFEST_FILE_KEYS[fmt]] = filename
            exports.append(ExportEntry(collection=collection_id, records=len(rows), files=files))

        manifest = BackupManifest(
            timestamp=timestamp or f"{token[:10]}T{token[11:].replace('-', ':')}.000Z",
            exports=exports,
            total_records=sum(entry.records for entry in exports),
            collections=len(exports),
            duration=42,
            type=backup_type,
        )
        backup_id = backup_id_for_token(token)
        write_json_file(backup_paths.manifest_path(backup_id), manifest.to_dict())
        return backup_id

    return _make_backup
