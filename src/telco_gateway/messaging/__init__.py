"""
Outbound SMS records, sending and delivery status correlation.
"""
