"""
core - logging and configuration infrastructure
"""
