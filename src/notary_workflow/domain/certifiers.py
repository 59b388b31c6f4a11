"""Certifier domain models."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Certifier:
    """A certifier allowed to take sessions from the queue."""

    id: int
    name: str
