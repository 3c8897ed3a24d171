"""
Script models — what melos.yaml declares and what we recommend.

A ScriptRecord is read from the workspace's melos.yaml on every parse
and never mutated afterwards.  A RecommendedScript is a compiled-in
catalog entry whose dependencies point at other entries *by name*.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ScriptRecord(BaseModel):
    """A script declared under ``scripts:`` in melos.yaml.

    Identity is the ``name``: two records with the same name are the
    same script for "already exists" checks, whatever their command.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    run: str = ""
    description: str = ""


class RecommendedScript(BaseModel):
    """A suggested script definition from the recommendation catalog.

    ``dependencies`` are catalog names, not objects.  A name that is not
    in the catalog simply resolves to nothing.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    run: str
    description: str = ""
    dependencies: tuple[str, ...] = Field(default_factory=tuple)

    def to_record(self) -> ScriptRecord:
        """The record this recommendation becomes once written to melos.yaml."""
        return ScriptRecord(name=self.name, run=self.run, description=self.description)
