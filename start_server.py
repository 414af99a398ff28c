#!/usr/bin/env python3
"""Start uvicorn for container deployments, honouring the PORT environment variable."""

import os
import subprocess
import sys
import traceback

port = os.environ.get("PORT", "8000")
try:
    port_int = int(port)
except ValueError:
    print(f"Warning: Invalid PORT value '{port}', using default 8000", file=sys.stderr)
    port_int = 8000

src_path = os.path.abspath("src")
if not os.path.isdir(src_path):
    print(f"Warning: src directory not found at {src_path}", file=sys.stderr)
    src_path = os.getcwd()

existing = os.environ.get("PYTHONPATH", "")
os.environ["PYTHONPATH"] = f"{src_path}:{existing}" if existing else src_path
sys.path.insert(0, src_path)

# Fail fast on configuration errors (bad DFEE_* values) before handing over to uvicorn.
try:
    import delivery_fee.main  # noqa: F401
except Exception as e:
    print(f"❌ Failed to import delivery_fee.main ({type(e).__name__}): {e}", file=sys.stderr)
    traceback.print_exc(file=sys.stderr)
    sys.exit(1)

cmd = [
    sys.executable,
    "-m",
    "uvicorn",
    "delivery_fee.main:app",
    "--host",
    "0.0.0.0",
    "--port",
    str(port_int),
    "--proxy-headers",
    "--forwarded-allow-ips",
    "*",
]

print(f"🚀 Starting delivery fee API on port {port_int} (PYTHONPATH={os.environ['PYTHONPATH']})", file=sys.stderr)
try:
    sys.exit(subprocess.call(cmd))
except KeyboardInterrupt:
    print("⚠️ Server interrupted by user", file=sys.stderr)
    sys.exit(0)
