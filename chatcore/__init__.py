# chatcore/__init__.py

"""
Root package for chatcore, the content-generation layer of the AI CLI assistant.

The package gives the chat orchestrator (history, tool loop, streaming UI)
one backend-agnostic contract for talking to language models:

- `chatcore.schemas`           → canonical conversation / request / response model
- `chatcore.adapters.base`     → the generator contract every backend implements
- `chatcore.adapters.factory`  → builds the right adapter from resolved config
- `chatcore.sanitizer`         → strips leaked reasoning markup, extracts JSON

Callers depend on the contract only and never branch on backend identity.
"""

__version__ = "0.2.0"
