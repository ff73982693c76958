"""
Telco gateway.

Outbound SMS dispatch across interchangeable carriers, bridged alias calls,
and reconciliation of signed carrier webhooks.
"""

__version__ = "0.1.0"
