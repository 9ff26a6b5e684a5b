"""
Temporal activities — thin dict-in/dict-out wrappers around the analysis features.
"""
