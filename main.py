#!/usr/bin/env python3
"""
who-can - List who can perform the specified action on a resource.

    python main.py get pods
    python main.py delete deployments.apps --all-namespaces
"""

from whocan.cli import main

if __name__ == "__main__":
    main()
