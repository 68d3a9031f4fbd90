#!/usr/bin/env python3
# backend/run.py
"""
Development server runner.

Uses the settings from the environment / backend/.env; SQLite and the
in-memory broadcaster are the defaults, so no services are required.
"""
import os
from pathlib import Path
import sys

# Add backend to path
backend_dir = Path(__file__).parent
sys.path.insert(0, str(backend_dir))
os.chdir(backend_dir)

import uvicorn

if __name__ == "__main__":
    port = int(os.getenv("PORT", "5000"))
    print(f"Starting chat backend on http://localhost:{port}")
    print(f"API docs: http://localhost:{port}/docs")

    uvicorn.run("chatapp.main:app", host="0.0.0.0", port=port, reload=True, log_level="info")
