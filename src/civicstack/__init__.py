"""
CivicStack complaint API.

Citizens submit complaints with photo and location evidence, the API scores
their priority, routes them through a three-stage resolution workflow, and
records community votes.
"""

__version__ = "0.4.0"
