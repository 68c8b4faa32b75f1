"""
CLI commands for dataset-monitor.
"""
