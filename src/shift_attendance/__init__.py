"""Shift attendance package.

Organized by feature modules (users, clock, schedules, attendance, reports, ...)
with a thin Flask controller layer over service/repository layers.
"""
