"""
HealthMate — Quick Start Launcher
Run this script to start the chat backend: python run.py
"""
import sys
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).resolve().parent
sys.path.insert(0, str(PROJECT_ROOT))


def main():
    from config.settings import API_HOST, API_PORT, HISTORY_BACKEND, LLM_PROVIDER

    print()
    print("=" * 60)
    print("  HealthMate — Health & Wellness Chat Assistant")
    print("=" * 60)
    print()
    print(f"    - LLM provider     : {LLM_PROVIDER}")
    print(f"    - History backend  : {HISTORY_BACKEND}")
    print("    - FastAPI          : Web Server")
    print()
    print("  Starting server...")
    print(f"  Open: http://localhost:{API_PORT}")
    print("=" * 60)
    print()

    import uvicorn
    uvicorn.run(
        "app.main:app",
        host=API_HOST,
        port=API_PORT,
        reload=False,
        log_level="info",
    )


if __name__ == "__main__":
    main()
