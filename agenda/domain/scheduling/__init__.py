"""
Scheduling core

- Time and schedule helpers (time_utils.py)
- Slot conflict detection (availability.py)
"""
