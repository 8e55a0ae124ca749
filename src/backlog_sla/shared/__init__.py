"""
Shared Kernel Module
====================

Shared infrastructure used by both bounded contexts (SLA analysis and
client analytics).

DO NOT add business logic from SLA or client analytics to the shared kernel.
"""
