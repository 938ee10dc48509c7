"""
monitor package marker.
"""
