# Gunicorn configuration file for CourseIntel API
import os

# Server socket
bind = f"0.0.0.0:{os.environ.get('PORT', '3000')}"
backlog = 2048

# Worker processes
# Each worker parses the CSV into its own in-memory store
workers = 2
worker_class = "uvicorn.workers.UvicornWorker"
worker_connections = 1000
max_requests = 1000
max_requests_jitter = 50

# Timeout settings
timeout = 30
keepalive = 2
graceful_timeout = 30

# Logging
accesslog = "-"  # Log to stdout
errorlog = "-"  # Log to stderr
loglevel = "info"
access_log_format = '%(h)s %(l)s %(u)s %(t)s "%(r)s" %(s)s %(b)s "%(f)s" "%(a)s" %(D)s'

# Process naming
proc_name = "courseintel-api"

# Server mechanics
daemon = False
pidfile = "/tmp/gunicorn.pid"
user = None  # Set to appropriate user in production
group = None  # Set to appropriate group in production
tmp_upload_dir = None

# Application
pythonpath = "src"
wsgi_app = "courseintel.api.main:app"
