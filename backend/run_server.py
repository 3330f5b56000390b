#!/usr/bin/env python3
"""
FastAPI server runner for the Roamly planner backend
"""

import os

import uvicorn

if __name__ == "__main__":
    uvicorn.run(
        "roamly.api:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        reload=os.getenv("RELOAD", "false").lower() == "true",
        log_level="info"
    )
