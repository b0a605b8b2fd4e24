"""
Gunicorn configuration for BundleRelay production deployment.

Usage:
    gunicorn bundlerelay.main:app -c gunicorn.conf.py
"""

import multiprocessing
import os

bind = os.getenv("BIND", "0.0.0.0:8000")

# Check-ins are short, CPU-light queries; size the pool to cores, not I/O wait
workers = int(os.getenv("WEB_CONCURRENCY", multiprocessing.cpu_count() * 2 + 1))

# Use Uvicorn's ASGI worker for FastAPI
worker_class = "uvicorn.workers.UvicornWorker"

# Bundle downloads from the local store are the slowest requests
timeout = 60

# Devices poll on every launch; keep connections briefly
keepalive = 5

# Logging
accesslog = "-"  # stdout
errorlog = "-"   # stderr
loglevel = os.getenv("LOG_LEVEL", "info")
