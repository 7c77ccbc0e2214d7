#!/usr/bin/env python3
"""
File Publisher - Main Application Entry Point

Polls a message directory and hands every file found there to a content
handler, optionally deleting files once they have been handled.
"""

import sys

from file_publisher.app import main


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nApplication stopped by user.")
        sys.exit(130)
