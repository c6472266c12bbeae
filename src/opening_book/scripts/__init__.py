"""
Command-line scripts run with python -m.
"""
