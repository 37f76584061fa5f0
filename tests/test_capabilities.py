from __future__ import annotations

import pytest

from fscs_backend.capabilities import Capability, CapabilityMap


def test_parse_is_lenient_about_spelling() -> None:
    assert Capability.parse("ManageSitzungen") is Capability.manage_sitzungen
    assert Capability.parse(" manage_antraege ") is Capability.manage_antraege
    assert Capability.parse("ManageAnträge") is Capability.manage_antraege


def test_parse_rejects_unknown_names() -> None:
    with pytest.raises(ValueError, match="unknown capability"):
        Capability.parse("FlyToTheMoon")


def test_roles_grant_configured_capabilities_only() -> None:
    capabilities = CapabilityMap.from_groups(
        {"fsr": "ManageSitzungen, CreateAntrag", "kasse": "CreateAntrag"}
    )

    assert capabilities.roles_for(Capability.create_antrag) == frozenset({"fsr", "kasse"})
    assert capabilities.has_capability(["fsr"], Capability.manage_sitzungen)
    assert not capabilities.has_capability(["kasse"], Capability.manage_sitzungen)
    assert not capabilities.has_capability([], Capability.create_antrag)
    assert capabilities.capabilities_of(["kasse"]) == [Capability.create_antrag]


def test_admin_role_holds_every_capability() -> None:
    capabilities = CapabilityMap.from_groups({"root": "Admin"})

    assert all(capabilities.has_capability(["root"], cap) for cap in Capability)
    assert capabilities.capabilities_of(["root"]) == list(Capability)


def test_capabilities_are_reported_by_their_configured_names() -> None:
    capabilities = CapabilityMap.from_groups({"fsr": "manage_sitzungen, ViewProtected"})

    held = [str(cap) for cap in capabilities.capabilities_of(["fsr"])]

    assert held == ["ManageSitzungen", "ViewProtected"]
    assert Capability.parse(Capability.manage_antraege.value) is Capability.manage_antraege
