"""
Flow Canvas core - type registry, sessions, layout and plugin discovery.
"""
