"""
Alias (two-leg bridged) calls.
"""
