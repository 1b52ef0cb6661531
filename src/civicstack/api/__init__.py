"""
CivicStack REST API
"""
