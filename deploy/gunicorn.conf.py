"""Gunicorn configuration for the course assistant — 4-core production server.

Usage:
    gunicorn main:app -c deploy/gunicorn.conf.py

The service is I/O bound: it waits on the AI gateway (embeddings and
completions), blob storage and PostgreSQL, and holds SSE chat streams open
for the length of an answer.
"""

import multiprocessing
import os

# ─── Server socket ──────────────────────────────────────────────

bind = os.getenv("BIND", "0.0.0.0:5000")
backlog = 2048

# ─── Worker processes ───────────────────────────────────────────
#
# One async worker per core.  Each worker has its own indexing queue, LLM
# semaphore and heavy-endpoint limit.

workers = int(os.getenv("WORKERS", min(multiprocessing.cpu_count(), 4)))
worker_class = "uvicorn.workers.UvicornWorker"

# ─── Timeouts ───────────────────────────────────────────────────
#
# Chat streams: up to 90s on the fallback transport
# Inline indexing (/api/embed): 60s fetch + batched embedding calls

timeout = 180
graceful_timeout = 60   # in-flight streams and queued indexing tasks finish
keepalive = 120

# ─── Worker recycling ──────────────────────────────────────────

max_requests = 3000
max_requests_jitter = 500

# ─── Logging ────────────────────────────────────────────────────

accesslog = "-"                     # stdout
errorlog = "-"                      # stderr
loglevel = os.getenv("LOG_LEVEL", "info")
access_log_format = (
    '%(h)s %(l)s %(u)s %(t)s "%(r)s" %(s)s %(b)s "%(f)s" %(D)sμs'
)

proc_name = "course-study-buddy"

# ─── Server hooks ───────────────────────────────────────────────


def on_starting(server):
    server.log.info(
        "Starting course assistant — workers=%d, timeout=%ds, bind=%s",
        workers,
        timeout,
        bind,
    )


def worker_exit(server, worker):
    server.log.info("Worker exit (pid: %s)", worker.pid)
