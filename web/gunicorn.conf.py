import os

def cpu():
    return max(1, (os.cpu_count() or 1))

wsgi_app = "config.wsgi:application"
bind = f"0.0.0.0:{os.getenv('PORT', '3000')}"

# Workers; provisioning runs on daemon threads inside each worker
workers = int(os.getenv("GUNI_WORKERS", str(min(max(2, cpu()), 4))))
worker_class = "gthread"
threads = int(os.getenv("GTHREADS", "4"))

# A provisioning run lasts at most 3 x 5s RCON timeouts plus 2s + 4s backoff
timeout = int(os.getenv("GUNI_TIMEOUT", "60"))
graceful_timeout = int(os.getenv("GUNI_GRACEFUL_TIMEOUT", "30"))
keepalive = int(os.getenv("GUNI_KEEPALIVE", "5"))

# Worker recycling kills in-flight provisioning threads, so it stays off by default
max_requests = int(os.getenv("GUNI_MAX_REQUESTS", "0"))
max_requests_jitter = int(os.getenv("GUNI_MAX_REQUESTS_JITTER", "0"))

accesslog = "-"
errorlog = "-"
loglevel = os.getenv("GUNI_LOGLEVEL", "info")
