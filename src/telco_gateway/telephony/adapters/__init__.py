"""
Carrier adapters.
"""

from telco_gateway.telephony.adapters.mock import MockAdapter
from telco_gateway.telephony.adapters.telnyx import TelnyxAdapter
from telco_gateway.telephony.adapters.twilio import TwilioAdapter

__all__ = ["MockAdapter", "TelnyxAdapter", "TwilioAdapter"]
