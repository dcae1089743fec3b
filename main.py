#!/usr/bin/env python3
"""
Main entry point for the Aniportal FastAPI application
"""

import uvicorn
from aniportal import create_app
from aniportal.config import Config

# Create FastAPI application instance
app = create_app()

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=Config.HOST,
        port=Config.PORT,
        reload=Config.RELOAD,
        log_level=Config.LOG_LEVEL.lower(),
    )
