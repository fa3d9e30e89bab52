"""File size limits applied before artifacts are read into memory."""

import math

from backup_console.errors import AppError


class FileSizeError(AppError):
    """Raised when a file exceeds its configured ceiling."""

    def __init__(self, actual_size, max_size, file_type='file'):
        self.actual_size = actual_size
        self.max_size = max_size
        self.file_type = file_type
        actual_mb = actual_size / 1024 / 1024
        max_mb = max_size / 1024 / 1024
        super().__init__(
            message=(
                f"File size ({actual_mb:.2f}MB) exceeds maximum allowed size "
                f"({max_mb:.2f}MB) for {file_type}"
            ),
            details={'actualSize': actual_size, 'maxSize': max_size},
            status_code=413
        )


def validate_file_size(size, max_size, file_type='file'):
    """Raise FileSizeError when ``size`` is above ``max_size`` bytes."""
    if size > max_size:
        raise FileSizeError(size, max_size, file_type)


def validate_backup_file_size(size, max_size):
    validate_file_size(size, max_size, 'backup file')


def format_file_size(num_bytes):
    """Human readable size, e.g. ``1.5 MB``."""
    if not num_bytes:
        return '0 Bytes'

    units = ['Bytes', 'KB', 'MB', 'GB']
    index = min(int(math.floor(math.log(num_bytes, 1024))), len(units) - 1)
    value = round(num_bytes / math.pow(1024, index), 2)
    # 1.50 -> 1.5, 2.00 -> 2
    text = f"{value:.2f}".rstrip('0').rstrip('.')
    return f"{text} {units[index]}"
