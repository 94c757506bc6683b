#!/usr/bin/env python3
"""
Start the QueryPilot HTTP API with uvicorn.
Mutating commands sent over HTTP are rejected unless the request sets bypass_approval.
"""

import sys
from pathlib import Path
import argparse

import dotenv
dotenv.load_dotenv()

# Add the parent directory to sys.path to import our modules
sys.path.insert(0, str(Path(__file__).parent.parent))

import uvicorn

from querypilot.core.config import DEBUG, get_planner_provider, validate_config


def main():
    parser = argparse.ArgumentParser(description='Serve the QueryPilot API')
    parser.add_argument('--port', type=int, default=8000,
                        help='Port to serve on (default: 8000)')
    parser.add_argument('--host', default='127.0.0.1',
                        help='Host to bind to (default: 127.0.0.1)')

    args = parser.parse_args()

    issues = validate_config()
    if issues:
        print("❌ Configuration issues:")
        for issue in issues:
            print(f"   - {issue}")
        sys.exit(1)

    print("🧭 QueryPilot API")
    print("=" * 50)
    print(f"🌐 Listening on: http://{args.host}:{args.port}")
    print(f"🧠 Planner: {get_planner_provider()}")
    if DEBUG:
        print(f"🔧 Debug mode enabled - docs at http://{args.host}:{args.port}/docs")
    print("=" * 50)

    from querypilot.api.main import app
    uvicorn.run(app, host=args.host, port=args.port, log_level="debug" if DEBUG else "info")


if __name__ == "__main__":
    main()
