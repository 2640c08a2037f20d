"""Repository identity model."""

from pathlib import Path

from pydantic import BaseModel


class RepositoryIdentity(BaseModel):
    """Name and canonical location of a repository, fixed at construction."""

    name: str
    canonical_path: Path

    model_config = {"frozen": True}
