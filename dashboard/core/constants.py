"""
Centralized constants for the dashboard sync layer.

Every value reads from an environment variable with a working default, so a
local cluster needs zero configuration.
"""
import os

# --- Remote service ---
DASHBOARD_URL = os.getenv("DASHBOARD_URL", "http://localhost:80").rstrip("/")

# --- Sync strategy: "pull" (request/response) or "push" (event stream) ---
SYNC_MODE = os.getenv("DASHBOARD_SYNC_MODE", "pull").lower()
SYNC_MODES = ("pull", "push")

# --- Timeouts (seconds) ---
HTTP_TIMEOUT = float(os.getenv("DASHBOARD_HTTP_TIMEOUT", "0.5"))
STREAM_TIMEOUT = float(os.getenv("DASHBOARD_STREAM_TIMEOUT", "30.0"))

# --- Stream reconnect policy ---
STREAM_MAX_RETRIES = int(os.getenv("DASHBOARD_STREAM_MAX_RETRIES", "5"))
STREAM_BACKOFF_MIN = float(os.getenv("DASHBOARD_STREAM_BACKOFF_MIN", "1.0"))
STREAM_BACKOFF_MAX = float(os.getenv("DASHBOARD_STREAM_BACKOFF_MAX", "30.0"))

# --- Signature feed ---
SIGNATURE_CAPACITY = int(os.getenv("DASHBOARD_SIGNATURE_CAPACITY", "10"))
SIGNATURES_PATH = os.getenv("DASHBOARD_SIGNATURES_PATH", "/signatures")

# --- Entry module ---
POLL_INTERVAL = float(os.getenv("DASHBOARD_POLL_INTERVAL", "2.0"))

# --- Endpoint paths ---
CLUSTER_INFO_PATH = "/cluster-info"
NODE_STATE_PATH = "/node-state"
CLUSTER_CONFIG_PATH = "/config/cluster"
INSTANCE_CONFIG_PATH = "/config/instance"
NODE_STOP_PATH = "/node-stop"
NODE_START_PATH = "/node-start"
NETWORK_SEVER_PATH = "/network-sever"

# --- Node state values with semantic effect ---
STATE_DOWN = "down"

# --- Logging ---
LOG_LEVEL = os.getenv("DASHBOARD_LOG_LEVEL", "INFO").upper()
