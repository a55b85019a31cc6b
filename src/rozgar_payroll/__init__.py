"""Rozgar payroll package.

Attendance calendar, payroll and payment settlement for daily-wage workers,
organized by feature modules (attendance, payroll, payments, applications, ...)
with a thin Flask controller layer over service/repository layers.
"""
