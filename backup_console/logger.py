"""Logging configuration for the backup console."""

import os
import json
import logging
import logging.config
from datetime import datetime

from flask import has_request_context, request

# LogRecord attributes that are not user supplied extras
_RECORD_ATTRS = frozenset(vars(logging.LogRecord('', 0, '', 0, '', (), None))) | {'message', 'asctime'}

class RequestContextFilter(logging.Filter):
    """Attach the HTTP method, path and client address while serving a request."""

    def filter(self, record):
        if has_request_context():
            record.method = request.method
            record.path = request.path
            record.remote_addr = request.remote_addr
        return True

class JSONFormatter(logging.Formatter):
    """One JSON object per line, extras such as ``backup_id`` included."""

    def format(self, record):
        log_data = {
            'timestamp': datetime.utcnow().isoformat() + 'Z',
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RECORD_ATTRS and key not in log_data:
                log_data[key] = value

        return json.dumps(log_data, default=str)

def _rotating_handler(log_dir, filename, level, formatter):
    return {
        'class': 'logging.handlers.RotatingFileHandler',
        'level': level,
        'formatter': formatter,
        'filters': ['request_context'],
        'filename': os.path.join(log_dir, filename),
        'maxBytes': 10485760,  # 10 MB
        'backupCount': 5,
    }

def setup_logging(app):
    """Configure root, werkzeug and apscheduler logging from app config.

    ``LOG_FORMAT`` selects ``json`` or ``standard`` output. Outside of tests
    ``app.log`` and ``error.log`` rotate under ``LOG_DIR``.
    """
    log_level = app.config.get('LOG_LEVEL', 'INFO').upper()
    formatter = 'json' if app.config.get('LOG_FORMAT', 'json') == 'json' else 'standard'

    handlers = {
        'console': {
            'class': 'logging.StreamHandler',
            'level': log_level,
            'formatter': formatter,
            'filters': ['request_context'],
        },
    }

    if not app.config.get('TESTING'):
        log_dir = app.config.get('LOG_DIR') or os.path.join(os.getcwd(), 'logs')
        os.makedirs(log_dir, exist_ok=True)
        handlers['file'] = _rotating_handler(log_dir, 'app.log', log_level, formatter)
        handlers['error_file'] = _rotating_handler(log_dir, 'error.log', 'ERROR', formatter)

    logging.config.dictConfig({
        'version': 1,
        'disable_existing_loggers': False,
        'filters': {
            'request_context': {'()': RequestContextFilter},
        },
        'formatters': {
            'standard': {
                'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
                'datefmt': '%Y-%m-%d %H:%M:%S'
            },
            'json': {
                '()': JSONFormatter
            },
        },
        'handlers': handlers,
        'root': {
            'handlers': list(handlers),
            'level': log_level,
        },
        'loggers': {
            # Access logs come from gunicorn; job chatter only when it matters
            'werkzeug': {'level': 'WARNING'},
            'apscheduler': {'level': 'WARNING'},
        },
    })

    app.logger.info(f"Logging set up with level {log_level} ({formatter})")
