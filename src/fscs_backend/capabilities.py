from __future__ import annotations

import enum
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType


class Capability(enum.StrEnum):
    admin = "Admin"
    manage_sitzungen = "ManageSitzungen"
    manage_antraege = "ManageAntraege"
    manage_persons = "ManagePersons"
    manage_door = "ManageDoor"
    create_antrag = "CreateAntrag"
    view_hidden = "ViewHidden"
    view_protected = "ViewProtected"

    @classmethod
    def parse(cls, raw: str) -> Capability:
        """Parse a configured capability name.

        Matching ignores case, underscores and surrounding whitespace, and
        accepts umlaut spellings such as ``ManageAnträge``.
        """
        capability = _BY_NORMALIZED_NAME.get(_normalize(raw))
        if capability is None:
            raise ValueError(f"unknown capability: {raw!r}")
        return capability


def _normalize(raw: str) -> str:
    return raw.strip().lower().replace("_", "").replace("ä", "ae")


_BY_NORMALIZED_NAME = {_normalize(cap.value): cap for cap in Capability}


@dataclass(frozen=True)
class CapabilityMap:
    """Which roles grant which capability; built once from configuration."""

    roles_by_capability: Mapping[Capability, frozenset[str]] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @classmethod
    def from_groups(cls, groups: Mapping[str, str]) -> CapabilityMap:
        collected: dict[Capability, set[str]] = {}
        for role, raw_capabilities in groups.items():
            for raw in raw_capabilities.split(","):
                if not raw.strip():
                    continue
                collected.setdefault(Capability.parse(raw), set()).add(role)

        return cls(
            MappingProxyType({cap: frozenset(roles) for cap, roles in collected.items()})
        )

    def roles_for(self, capability: Capability) -> frozenset[str]:
        return self.roles_by_capability.get(capability, frozenset())

    def has_capability(self, roles: Iterable[str], capability: Capability) -> bool:
        granting = self.roles_for(capability) | self.roles_for(Capability.admin)
        return any(role in granting for role in roles)

    def capabilities_of(self, roles: Iterable[str]) -> list[Capability]:
        held = list(roles)
        return [cap for cap in Capability if self.has_capability(held, cap)]
