"""
modules - application modules
"""
