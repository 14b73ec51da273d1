"""
Application Layer

Orchestrates domain objects and infrastructure to fulfil use cases.

Structure:
- services/: queue, playlist, identity and reconciliation engines
- interfaces/: Port interfaces for infrastructure adapters
"""
