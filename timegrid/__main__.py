"""
Entry point for running timegrid as a module.

Usage:
    python -m timegrid --snapshot school.json grid "Class 5" A
    python -m timegrid --snapshot school.json check-slot 09:30 10:30
    python -m timegrid add "Class 5" A 09:00-10:00 monday --subject Mathematics --teacher 7
"""

from timegrid.cli import main

if __name__ == "__main__":
    main()
