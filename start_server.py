#!/usr/bin/env python3
"""
Start the Elden Ring Damage Calculator Web Server

Usage:
    python start_server.py [--port PORT] [--host HOST] [--data PATH]

Example:
    python start_server.py --port 8080 --data data/precomputed.json --aow-data data/aow.json
"""

import argparse
import logging
import os
import sys

# Paths given on the command line are relative to where the server was launched
LAUNCH_DIR = os.getcwd()

# Change to the script directory
os.chdir(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

LOG_LEVELS = ('debug', 'info', 'warning', 'error')


def main():
    parser = argparse.ArgumentParser(description='Elden Ring Damage Calculator Web Server')
    parser.add_argument('--port', type=int, default=8000, help='Port to run the server on')
    parser.add_argument('--host', type=str, default='127.0.0.1', help='Host to bind to')
    parser.add_argument('--reload', action='store_true', help='Enable auto-reload for development')
    parser.add_argument('--data', type=str, help='Weapon data bundle (JSON)')
    parser.add_argument('--aow-data', type=str, help='Ash of War data bundle (JSON)')
    parser.add_argument('--enemy-data', type=str, help='Enemy data bundle (JSON)')
    parser.add_argument('--log-level', choices=LOG_LEVELS, default='info', help='Logging level')
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper()),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    # Passed through the environment so reload workers see them too
    for env_name, path in (('ER_CALC_DATA', args.data),
                           ('ER_CALC_AOW_DATA', args.aow_data),
                           ('ER_CALC_ENEMY_DATA', args.enemy_data)):
        if path:
            os.environ[env_name] = os.path.abspath(os.path.join(LAUNCH_DIR, path))

    print("=" * 60)
    print("Elden Ring Damage Calculator")
    print("=" * 60)
    print()
    print(f"Weapon data:  {args.data or '(none, upload via /api/data/weapons)'}")
    print(f"AoW data:     {args.aow_data or '(none)'}")
    print(f"Enemy data:   {args.enemy_data or '(none)'}")
    print()
    print(f"Starting server at http://{args.host}:{args.port}")
    print(f"API Documentation at http://{args.host}:{args.port}/docs")
    print()
    print("Press Ctrl+C to stop the server.")
    print("=" * 60)

    import uvicorn
    uvicorn.run(
        "api:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=args.log_level,
    )

if __name__ == "__main__":
    main()
