#!/usr/bin/env python3
"""MediTimer — entry point.

Run with:
    python main.py 5:00 10:00 2:30
    python -m meditimer 5:00 10:00 2:30
"""

from meditimer.__main__ import main


if __name__ == "__main__":
    main()
