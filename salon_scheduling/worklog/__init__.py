"""
Work Log Module

Reconstructs an employee's working day from attendance, appointments and
sales, and rolls days up into period summaries:
- Tolerant parallel fetching (fanout.py)
- One employee-day (aggregator.py)
- Period summaries and statistics (summary.py)
"""
