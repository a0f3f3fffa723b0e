#!/usr/bin/env python3
"""
Startup script for CourseIntel API server
Runs the FastAPI application with Scalar documentation available at /docs
"""

import sys
from pathlib import Path

import uvicorn

# Add src to path for imports
src_path = Path(__file__).parent / "src"
sys.path.insert(0, str(src_path))

from courseintel.core.config import get_settings  # noqa: E402


def main() -> None:
    """Run the FastAPI server"""
    settings = get_settings()
    base_url = f"http://localhost:{settings.port}"

    print(f"Starting {settings.app_name} server ({settings.environment})...")
    print(f"Scalar API Documentation will be available at: {base_url}/docs")
    print(f"OpenAPI JSON schema available at: {base_url}/openapi.json")
    print(f"Health check: {base_url}/health")
    print(f"API base: {base_url}/api/v1")

    uvicorn.run(
        "courseintel.api.main:app",
        host=settings.api_host,
        port=settings.port,
        reload=not settings.is_production,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
