"""
Carrier webhook endpoints.
"""
