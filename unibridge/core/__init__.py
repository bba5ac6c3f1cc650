"""
Core module - configuration and logging setup.
"""
