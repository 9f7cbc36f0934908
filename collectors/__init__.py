"""
Snapshot sources discovered by the command line application.
"""
