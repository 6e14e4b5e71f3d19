"""Clinic application for the VolleyMed backend.

This package contains the medical record models, the OCR intake pipeline,
the critical-value monitor, the notification center and the change feed
that pushes row changes to connected staff clients.
"""
