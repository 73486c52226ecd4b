"""
Shift Calendar

Monthly work-shift schedules for groups of employees, kept consistent by a
validating store and exported as iCalendar files for calendar applications.
"""

__version__ = "1.0.0"
__author__ = "Shift Calendar Team"
