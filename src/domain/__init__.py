"""
Domain layer for verification email delivery.

This layer contains:
- Data models (records, configuration, messages, outcomes)
- Error taxonomy
- Delivery pipeline for the reactive and manual entry points
"""
