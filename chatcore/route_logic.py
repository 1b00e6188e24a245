# chatcore/route_logic.py

"""
Maps a configured backend identity to the adapter module that implements it.

This is the only place that knows which backends exist. Everything past the
factory works against the generator contract, so adding a provider means
adding an adapter module and one entry here.
"""

from typing import Dict

from chatcore.exceptions import UnsupportedBackend
from chatcore.generator_config import AuthType

ADAPTER_MODULES: Dict[AuthType, str] = {
    AuthType.USE_GEMINI: "gemini_adapter",
    AuthType.OLLAMA: "ollama_adapter",
}


def select_adapter_module(backend: AuthType | str) -> str:
    """
    Resolve a backend identity to an adapter module name.

    Args:
        backend (AuthType | str): Identity from resolved configuration, e.g. "ollama".

    Returns:
        str: Module name under `chatcore.adapters`, e.g. "ollama_adapter".

    Raises:
        UnsupportedBackend: The identity matches no known adapter.
    """
    try:
        auth_type = AuthType(backend)
    except ValueError:
        raise UnsupportedBackend(backend) from None

    module = ADAPTER_MODULES.get(auth_type)
    if module is None:
        raise UnsupportedBackend(backend)
    return module
