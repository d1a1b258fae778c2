"""
Scheduling Services Module

This module provides core business logic for appointment scheduling:
- Appointment lifecycle (status.py)
- Working hours, breaks and date exceptions (working_hours.py)
- Availability calculation (availability.py)
- Overlap detection (overlap.py)
- Slot generation for UI (slots.py)
- Booking validation and commit (booking.py)
"""
