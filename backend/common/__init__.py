"""
Shared plumbing: error taxonomy, environment-driven settings and logging.
"""
