"""Geo Attendance package.

This package is organized by feature modules (attendance, corrections,
geofence, reports, ...) with a thin Flask controller layer and
service/repository layers underneath.
"""
