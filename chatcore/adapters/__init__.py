# chatcore/adapters/__init__.py

"""
Package initializer for `chatcore.adapters`.

Contains the generator contract (`base.py`), one module per provider
implementing it, and the factory that picks between them:

- `ollama_adapter.py`  → local open models, the capability-gap case
- `gemini_adapter.py`  → Gemini REST API, the baseline case
- `factory.py`         → `create_content_generator(config)`

Every provider module exposes `get_adapter(config)`, which the factory
imports dynamically.
"""

from chatcore.adapters.base import BaseContentGenerator, GeneratorCapabilities
from chatcore.adapters.factory import create_content_generator

__all__ = ["BaseContentGenerator", "GeneratorCapabilities", "create_content_generator"]
