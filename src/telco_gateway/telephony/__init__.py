"""
Carrier integration: adapters, provider registry, SMS dispatch, phone
normalization and webhook signing.
"""
