"""Config kind descriptor model and registry.

Registry Functions:
    - DescriptorRegistry.register(): add a descriptor at startup
    - DescriptorRegistry.get(): look up a kind, raising UnknownKindError
    - DescriptorRegistry.list(): descriptors in registration order
    - DescriptorRegistry.sorted_for_display(): locale-aware order by display name
"""

from ccswitch.registry.descriptors import (
    ActivationHook,
    Capability,
    ConfigDescriptor,
    Endpoints,
    MarkerSpec,
)
from ccswitch.registry.registry import DescriptorRegistry

__all__ = [
    "ActivationHook",
    "Capability",
    "ConfigDescriptor",
    "DescriptorRegistry",
    "Endpoints",
    "MarkerSpec",
]
