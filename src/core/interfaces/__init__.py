"""Core interfaces/abstractions.

Why:
- Contracts (Protocol) implemented by concrete adapters: the host that owns
  documents, the notification sink and the save-event source.
- Dependency inversion: the core depends on abstractions only.
"""
