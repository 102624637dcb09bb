#!/usr/bin/env python3
"""
Startup script for the mutation engine API.
"""

import os
import sys
import subprocess


def main():
    """Start uvicorn on $HOST:$PORT."""
    host = os.environ.get('HOST', '0.0.0.0')
    port = os.environ.get('PORT', '8000')

    cmd = [
        'uvicorn',
        'app.main:app',
        '--host', host,
        '--port', str(port),
    ]

    print(f"Starting mutation engine: {' '.join(cmd)}")

    try:
        subprocess.run(cmd, check=True)
    except subprocess.CalledProcessError as e:
        print(f"Error starting server: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        print("Server stopped by user")
        sys.exit(0)


if __name__ == "__main__":
    main()
