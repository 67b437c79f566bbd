#!/usr/bin/env python3
"""
Backend startup wrapper.

Creates missing tables, then serves hermes.main:app with uvicorn.
"""
import os
import sys

# Add workspace to path
workspace_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, workspace_root)


def main() -> None:
    import uvicorn
    from hermes.core.database import create_all_tables

    create_all_tables()

    print("[Backend] Starting Hermes Backend")
    print(f"[Backend] Server: http://localhost:{os.getenv('PORT', '8000')}")
    print("[Backend] Press CTRL+C to stop")

    try:
        uvicorn.run(
            "hermes.main:app",
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "8000")),
            reload=False,
            log_level="info",
            access_log=True,
        )
    except KeyboardInterrupt:
        print("\n[Backend] Shutting down...")


if __name__ == "__main__":
    main()
