"""
Client Analytics Module
=======================

Bounded Context for cross-source client risk analytics.

Responsibilities:
- Fold tickets of every source by client identity
- Compute the incident-ratio risk score of each client
- Derive the global dashboard analytics (volumes, breakdowns, client views)
"""
