"""
CivicStack - Core Package

This package contains the backend for the civic complaint reporting platform,
including priority scoring, community voting, and resolution workflows.
"""

__version__ = "0.4.0"
