"""
Incident Analysis Engine.

This package classifies help-desk tickets with keyword lexicons, derives
priority/urgency/impact triage and remediation guidance, and rolls the
results up into department statistics, a daily summary and CSV/Excel exports.
"""

__version__ = "1.0.0"
__author__ = "Automation Engineer"
