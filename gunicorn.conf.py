"""Gunicorn configuration for the order management API."""

import os

# Ensure ASGI worker is used even when start command is `gunicorn app.main:app`.
worker_class = "uvicorn.workers.UvicornWorker"
wsgi_app = "app.main:app"

bind = f"0.0.0.0:{os.getenv('PORT', '8000')}"

# Without REDIS_URL every worker process runs its own in-process invoice queue.
workers = int(os.getenv("WEB_CONCURRENCY", "1"))
timeout = int(os.getenv("GUNICORN_TIMEOUT", "120"))
graceful_timeout = int(os.getenv("GUNICORN_GRACEFUL_TIMEOUT", "30"))
