"""
API package for Statecheck.
"""
