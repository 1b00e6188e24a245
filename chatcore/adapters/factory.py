# chatcore/adapters/factory.py

"""
Generator factory: builds the concrete content generator for resolved configuration.

🧠 Purpose:
- Resolve the configured backend identity to an adapter module (via route_logic.py)
- Import that module at runtime
- Let the module's `get_adapter(config)` build the instance

Construction is pure. No network I/O happens here; connectivity is only
exercised by the first contract call.
"""

import importlib
import logging

from chatcore.adapters.base import BaseContentGenerator
from chatcore.generator_config import ContentGeneratorConfig
from chatcore.route_logic import select_adapter_module

logger = logging.getLogger("chatcore.adapters.factory")


def create_content_generator(config: ContentGeneratorConfig) -> BaseContentGenerator:
    """
    Construct exactly one content generator for the given configuration.

    Args:
        config (ContentGeneratorConfig): Resolved backend, model, endpoint and credentials.

    Returns:
        BaseContentGenerator: The adapter bound to the selected backend.

    Raises:
        UnsupportedBackend: The backend identity matches no known adapter.
    """
    module_name = select_adapter_module(config.backend)
    module = importlib.import_module(f"chatcore.adapters.{module_name}")
    generator = module.get_adapter(config)
    logger.info(f"[factory] using {type(generator).__name__} for model {config.model}")
    return generator
