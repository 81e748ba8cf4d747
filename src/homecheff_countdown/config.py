"""
Runtime configuration, read from the environment (and a .env file if present).
"""

import os

from dotenv import load_dotenv

load_dotenv()

# Temporal connection. Client and worker must agree on the task queue.
TEMPORAL_ADDRESS = os.getenv("TEMPORAL_ADDRESS", "localhost:7233")
TEMPORAL_NAMESPACE = os.getenv("TEMPORAL_NAMESPACE", "default")
TASK_QUEUE = os.getenv("COUNTDOWN_TASK_QUEUE", "delivery-countdown")

# Sweep scheduling and per-order limits
SWEEP_INTERVAL_SECONDS = int(os.getenv("SWEEP_INTERVAL_SECONDS", "60"))
SWEEP_MAX_CONCURRENCY = int(os.getenv("SWEEP_MAX_CONCURRENCY", "10"))
SWEEP_CALL_TIMEOUT_SECONDS = float(os.getenv("SWEEP_CALL_TIMEOUT_SECONDS", "5"))
SWEEP_CLAIM_LEASE_SECONDS = float(os.getenv("SWEEP_CLAIM_LEASE_SECONDS", "30"))

# Tier boundaries in minutes before the deadline (product defaults, confirm before changing)
APPROACHING_MINUTES = float(os.getenv("COUNTDOWN_APPROACHING_MINUTES", "30"))
URGENT_MINUTES = float(os.getenv("COUNTDOWN_URGENT_MINUTES", "10"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
