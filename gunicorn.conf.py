"""Gunicorn configuration file."""

import os

wsgi_app = os.getenv("GUNICORN_WSGI_APP", "application:app")
bind = os.getenv("GUNICORN_BIND", "0.0.0.0:8000")
chdir = os.getenv("GUNICORN_CHDIR", "/app")

# A single worker owns the backup scheduler; more workers would each run the job
workers = int(os.getenv("GUNICORN_WORKERS", "1"))
worker_class = "gthread"
threads = int(os.getenv("GUNICORN_THREADS", "4"))
worker_tmp_dir = "/dev/shm"

# Backups and restores run inside the request
timeout = int(os.getenv("GUNICORN_TIMEOUT", "300"))
graceful_timeout = int(os.getenv("GUNICORN_GRACEFUL_TIMEOUT", "60"))
keepalive = int(os.getenv("GUNICORN_KEEPALIVE", "5"))

reload = os.getenv("FLASK_ENV", "production") == "development"
preload_app = False

errorlog = os.getenv("GUNICORN_ERROR_LOG", "-")
accesslog = os.getenv("GUNICORN_ACCESS_LOG", "-")
loglevel = os.getenv("GUNICORN_LOG_LEVEL", "info")
# Authorization headers are never logged
access_log_format = '%(h)s %(t)s "%(r)s" %(s)s %(b)s %(L)ss'

limit_request_line = 4094
limit_request_fields = 100
forwarded_allow_ips = os.getenv("GUNICORN_FORWARDED_ALLOW_IPS", "127.0.0.1,::1")

def on_starting(server):
    server.log.info(f"Backup console starting with {workers} worker(s), timeout {timeout}s")

def worker_exit(server, worker):
    server.log.info(f"Worker {worker.pid} exited")
