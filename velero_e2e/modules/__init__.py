"""
Harness modules.
"""
