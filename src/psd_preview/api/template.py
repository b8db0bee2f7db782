"""
Template structure.

Templates declare named containers (output slots) with bounds in the same
logical coordinate space as transformed layers.
"""

import logging
from typing import Iterable, Optional

from attrs import define, field

from psd_preview.constants import NameMatch
from psd_preview.validators import finite_or

logger = logging.getLogger(__name__)


@define
class Bounds:
    x: float = field(default=0.0, converter=finite_or(0.0))
    y: float = field(default=0.0, converter=finite_or(0.0))
    w: float = field(default=0.0, converter=finite_or(0.0))
    h: float = field(default=0.0, converter=finite_or(0.0))

    @classmethod
    def from_dict(cls, data: dict) -> "Bounds":
        return cls(
            data.get("x", 0.0), data.get("y", 0.0), data.get("w", 0.0), data.get("h", 0.0)
        )


@define
class TemplateContainer:
    """
    Named destination region of a template.

    .. py:attribute:: name

        Cleaned container name.

    .. py:attribute:: original_name

        Raw name as found in the template source, if different.

    .. py:attribute:: bounds
    """

    name: str = field(converter=str)
    bounds: Bounds = field(factory=Bounds)
    original_name: Optional[str] = None

    def matches(self, target: str, policy: NameMatch = NameMatch.EXACT) -> bool:
        """Return True if `target` names this container under `policy`."""
        candidates = [self.name]
        if self.original_name is not None:
            candidates.append(self.original_name)
        if NameMatch(policy) == NameMatch.CASE_INSENSITIVE:
            target = target.casefold()
            return any(target == name.casefold() for name in candidates)
        return target in candidates

    @classmethod
    def from_dict(cls, data: dict) -> "TemplateContainer":
        if "name" not in data:
            raise ValueError("container is missing required key 'name'")
        return cls(
            name=data["name"],
            bounds=Bounds.from_dict(data.get("bounds") or {}),
            original_name=data.get("originalName"),
        )


@define
class Template:
    """Template with its containers in declared order."""

    name: str = field(converter=str)
    containers: list[TemplateContainer] = field(factory=list)

    def find(
        self, target: str, policy: NameMatch = NameMatch.EXACT
    ) -> Optional[TemplateContainer]:
        """Return the first container matching `target`, or None."""
        for container in self.containers:
            if container.matches(target, policy):
                return container
        return None

    @classmethod
    def from_dict(cls, data: dict) -> "Template":
        return cls(
            name=data.get("name", ""),
            containers=[
                TemplateContainer.from_dict(c) for c in data.get("containers") or ()
            ],
        )


def find_container(
    templates: Iterable[Template],
    target: str,
    policy: NameMatch = NameMatch.EXACT,
) -> Optional[TemplateContainer]:
    """
    Search templates in order and return the first matching container.
    """
    for template in templates:
        container = template.find(target, policy)
        if container is not None:
            logger.debug("Container %r found in template %r" % (target, template.name))
            return container
    return None
