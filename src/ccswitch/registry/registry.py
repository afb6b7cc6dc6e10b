"""Registry of config kind descriptors.

Descriptors are registered once at process start. Registration order is the
default display order; ``sorted_for_display`` additionally sorts by display
name with a stable, locale-aware comparison.
"""

from __future__ import annotations

import locale
import logging
from collections.abc import Iterable, Iterator

from ccswitch.core.exceptions import DescriptorRegistrationError, UnknownKindError
from ccswitch.registry.descriptors import ConfigDescriptor

logger = logging.getLogger(__name__)

__all__ = ["DescriptorRegistry"]


def _display_key(descriptor: ConfigDescriptor) -> str:
    try:
        return locale.strxfrm(descriptor.display_name.casefold())
    except (OSError, ValueError):
        # strxfrm can fail on odd locale setups; plain casefold still sorts stably
        return descriptor.display_name.casefold()


class DescriptorRegistry:
    """Ordered, write-once table of config kind descriptors.

    Example:
        >>> registry = DescriptorRegistry()
        >>> registry.register(descriptor)  # doctest: +SKIP
        >>> registry.freeze()
        >>> registry.get("claude-code")  # doctest: +SKIP

    """

    def __init__(self, descriptors: Iterable[ConfigDescriptor] = ()) -> None:
        self._descriptors: dict[str, ConfigDescriptor] = {}
        self._commands: dict[str, str] = {}
        self._frozen = False
        for descriptor in descriptors:
            self.register(descriptor)

    def register(self, descriptor: ConfigDescriptor) -> None:
        """Register a descriptor.

        Raises:
            DescriptorRegistrationError: If the registry is frozen, the kind
                id is empty or already registered, or a store command name is
                already claimed by another kind.

        """
        if self._frozen:
            raise DescriptorRegistrationError(
                f"Cannot register {descriptor.kind_id!r}: registry is frozen"
            )
        if not descriptor.kind_id:
            raise DescriptorRegistrationError("Descriptor kind_id cannot be empty")
        if descriptor.kind_id in self._descriptors:
            raise DescriptorRegistrationError(
                f"Duplicate config kind {descriptor.kind_id!r}"
            )
        for command in descriptor.endpoints.all():
            owner = self._commands.get(command)
            if owner is not None:
                raise DescriptorRegistrationError(
                    f"Store command {command!r} of {descriptor.kind_id!r} "
                    f"already registered by {owner!r}"
                )

        self._descriptors[descriptor.kind_id] = descriptor
        for command in descriptor.endpoints.all():
            self._commands[command] = descriptor.kind_id
        logger.debug("Registered config kind %s", descriptor.kind_id)

    def freeze(self) -> None:
        """End the registration phase."""
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def get(self, kind_id: str) -> ConfigDescriptor:
        """Return the descriptor for a kind.

        Raises:
            UnknownKindError: If no such kind is registered.

        """
        try:
            return self._descriptors[kind_id]
        except KeyError:
            raise UnknownKindError(kind_id) from None

    def list(self) -> list[ConfigDescriptor]:
        """Return descriptors in registration order."""
        return list(self._descriptors.values())

    def sorted_for_display(self) -> list[ConfigDescriptor]:
        """Return descriptors sorted by display name (stable, locale-aware)."""
        return sorted(self._descriptors.values(), key=_display_key)

    def __contains__(self, kind_id: object) -> bool:
        return kind_id in self._descriptors

    def __iter__(self) -> Iterator[ConfigDescriptor]:
        return iter(self._descriptors.values())

    def __len__(self) -> int:
        return len(self._descriptors)
