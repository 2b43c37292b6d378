"""
Flask web interface for the Event Sheet Core.
"""
