"""Built-in config kinds.

BUILTIN_KINDS lists the kinds in registration (default display) order.
"""

from ccswitch.kinds.claude_code import ApiKeyData, claude_code_kind
from ccswitch.kinds.environment import EnvironmentVariableData, environment_kind
from ccswitch.kinds.router import RouteConfigData, router_kind
from ccswitch.registry import ConfigDescriptor, DescriptorRegistry

BUILTIN_KINDS: tuple[ConfigDescriptor, ...] = (
    claude_code_kind,
    environment_kind,
    router_kind,
)


def default_registry() -> DescriptorRegistry:
    """Build a frozen registry holding the built-in kinds."""
    registry = DescriptorRegistry(BUILTIN_KINDS)
    registry.freeze()
    return registry


__all__ = [
    "BUILTIN_KINDS",
    "ApiKeyData",
    "EnvironmentVariableData",
    "RouteConfigData",
    "claude_code_kind",
    "default_registry",
    "environment_kind",
    "router_kind",
]
