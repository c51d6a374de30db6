#!/usr/bin/env python3
# backend/run.py
"""
Development server runner.

Uses a local SQLite database and creates the tables on startup unless
DATABASE_URL / AUTO_CREATE_TABLES are already set. Run migrations with
``alembic upgrade head`` for any shared database.
"""
import os
import sys
from pathlib import Path

# Add backend to path
backend_dir = Path(__file__).parent
sys.path.insert(0, str(backend_dir))
os.chdir(backend_dir)

os.environ.setdefault("DATABASE_URL", "sqlite:///./drivebook.db")
os.environ.setdefault("AUTO_CREATE_TABLES", "true")

import uvicorn

if __name__ == "__main__":
    print("Starting DriveBook development server")
    print(f"Database: {os.environ['DATABASE_URL']}")
    print("API Docs: http://localhost:8000/docs")

    uvicorn.run("drivebook.main:app", host="0.0.0.0", port=8000, reload=True, log_level="info")
