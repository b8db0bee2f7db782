"""
Registry pattern utility for creating type registries.

This module provides the ``new_registry`` function which creates a registry
dictionary and a decorator for registering handlers. The compositor uses it
to dispatch leaf painters by their :py:class:`~psd_preview.constants.LeafStatus`.

Usage example::

    from psd_preview.registry import new_registry

    PAINTERS, register = new_registry(attribute='status')

    @register(LeafStatus.MISSING_SOURCE)
    def draw_missing_source(surface, leaf, box):
        ...

    PAINTERS[LeafStatus.MISSING_SOURCE](surface, leaf, box)
"""

from typing import Any, Callable, Tuple, TypeVar, Union

T = TypeVar("T")


def new_registry(attribute: Union[str, None] = None) -> Tuple[dict, Callable]:
    """
    Returns an empty dict and a @register decorator.

    :param attribute: Optional attribute name to set on registered objects.
                     The key will be stored as this attribute on the object.
    :return: Tuple of (registry_dict, register_decorator)
    """
    registry: dict = {}

    def register(key: Any) -> Callable[[Callable[..., T]], Callable[..., T]]:
        def decorator(func: Callable[..., T]) -> Callable[..., T]:
            if key in registry:
                raise ValueError("Duplicate registration: %r" % (key,))
            registry[key] = func
            if attribute:
                setattr(func, attribute, key)
            return func

        return decorator

    return registry, register
