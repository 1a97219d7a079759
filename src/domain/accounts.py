"""Authenticated caller identity handed in by the outer layer."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Actor:
    account_id: int
    is_system_admin: bool = False
    username: str | None = None

    @property
    def label(self) -> str:
        return self.username or f"account {self.account_id}"
