"""
SLA Overdue Module
==================

Bounded Context for overdue classification of support tickets.

Responsibilities:
- Classify tickets against the source-specific SLA ladder
- Detect stagnant tickets
- Aggregate classifications per severity, priority, type, status and owner
- Build overdue alerts and export rows
"""
