"""Certifier roster lookups."""

from dataclasses import dataclass

from notary_workflow.domain.certifiers import Certifier
from notary_workflow.domain.errors import NotFoundError

DEFAULT_CERTIFIERS: dict[int, str] = {
    1: "Ana Rojas",
    2: "Carlos Soto",
}


@dataclass
class CertifierRoster:
    """Static roster of certifiers keyed by id."""

    certifiers: dict[int, Certifier]

    @classmethod
    def from_names(cls, names: dict[int, str]) -> "CertifierRoster":
        """Build a roster from an id to display name mapping."""
        return cls(
            {
                certifier_id: Certifier(id=certifier_id, name=name)
                for certifier_id, name in names.items()
            }
        )

    def get(self, certifier_id: int) -> Certifier:
        """Return a certifier or raise NotFoundError."""
        certifier = self.certifiers.get(certifier_id)
        if certifier is None:
            raise NotFoundError(f"Certifier {certifier_id} not found")
        return certifier

    def list(self) -> list[Certifier]:
        """Return all certifiers ordered by id."""
        return [self.certifiers[key] for key in sorted(self.certifiers)]
