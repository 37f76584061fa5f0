from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


def person_user_name(source_name: str, sub: str) -> str:
    return f"{source_name}-{sub}"


@dataclass(frozen=True)
class Identity:
    """Verified caller identity as carried in the signed ``user`` claim."""

    sub: str
    name: str
    preferred_username: str
    groups: tuple[str, ...] = field(default_factory=tuple)
    exp: int = 0

    def is_fresh(self, now: float, *, leeway_seconds: int = 30) -> bool:
        return self.exp - leeway_seconds > now

    def to_claim(self) -> dict[str, Any]:
        return {
            "sub": self.sub,
            "name": self.name,
            "preferred_username": self.preferred_username,
            "groups": list(self.groups),
            "exp": self.exp,
        }

    @classmethod
    def from_claim(cls, claim: Mapping[str, Any]) -> Identity:
        return cls(
            sub=str(claim["sub"]),
            name=str(claim.get("name", "")),
            preferred_username=str(claim.get("preferred_username", "")),
            groups=tuple(str(group) for group in claim.get("groups", ())),
            exp=int(claim["exp"]),
        )

    @classmethod
    def from_userinfo(cls, userinfo: Mapping[str, Any], *, exp: int) -> Identity:
        sub = str(userinfo["sub"])
        raw_groups = userinfo.get("groups") or ()
        if isinstance(raw_groups, str):
            raw_groups = (raw_groups,)
        return cls(
            sub=sub,
            name=str(userinfo.get("name") or ""),
            preferred_username=str(userinfo.get("preferred_username") or sub),
            groups=tuple(str(group) for group in raw_groups),
            exp=exp,
        )

    def name_parts(self) -> tuple[str, str]:
        first, _, last = self.name.strip().partition(" ")
        if not first:
            return self.preferred_username, ""
        return first, last.strip()
