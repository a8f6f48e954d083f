# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Two-phase credential issuance result.

An issued credential is valid where it was minted but must not be trusted as
durable until it is observed live in its target cluster. The issuing step
returns a ``ModelIssueResult`` whose ``commit`` performs that wait and then the
durable write; the orchestrator invokes it exactly once, later.
"""

from __future__ import annotations

from collections.abc import Callable

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from meshboot.enums import EnumCredentialKind
from meshboot.errors import CredentialRegistryError


def _noop() -> None:
    return None


class ModelIssueResult(BaseModel):
    """Secrets minted for one credential kind plus their deferred commit.

    Attributes:
        kind: Credential kind that was issued
        target_cluster: Cluster the credentials are meant for
        secrets: scope -> secret for every credential issued
        commit: Wait-then-persist callable; invoke through ``run_commit``
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    kind: EnumCredentialKind
    target_cluster: str
    secrets: dict[str, str] = Field(default_factory=dict, repr=False)
    commit: Callable[[], None] = Field(default=_noop, repr=False)

    _committed: bool = PrivateAttr(default=False)

    @property
    def committed(self) -> bool:
        return self._committed

    def run_commit(self) -> None:
        """Invoke ``commit`` once; a second invocation is a program defect."""
        if self._committed:
            raise CredentialRegistryError(
                f"deferred commit for {self.kind.value} credentials of "
                f"{self.target_cluster} invoked twice",
                credential_kind=self.kind.value,
                cluster=self.target_cluster,
            )
        self.commit()
        self._committed = True


__all__ = ["ModelIssueResult"]
