"""Pydantic schemas for the API-key (CLI) channel."""

from typing import Optional, Union

from pydantic import BaseModel

from scanara_engine.snapshots.schemas import FileEntry


class InlineProjectRequest(BaseModel):
    name: Optional[str] = None


class InlineCodebaseRequest(BaseModel):
    """A codebase sent in the request body, as a file list or one text blob."""
    project_name: Optional[str] = None
    codebase: Optional[Union[str, list[FileEntry]]] = None

    def codebase_payload(self):
        if isinstance(self.codebase, list):
            return [f.model_dump() for f in self.codebase]
        return self.codebase
