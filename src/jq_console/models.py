# models.py
# Data contracts for the jq console.
# No business logic lives here: pure schema and derived flags.
#
# Every model is frozen. State changes replace a snapshot wholesale with
# model_copy(update=...); nothing is mutated from more than one call site.

from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class BinaryInstallation(BaseModel):
    """A provisioned jq executable that passed its version probe."""

    model_config = ConfigDict(frozen=True)

    path: Path = Field(..., description="Location of the executable.")
    pinned_version: str = Field(..., description="Release tag, e.g. 'jq-1.7.1'.")
    executable: bool = Field(..., description="Owner exec bit seen after provisioning.")


class SourceDocument(BaseModel):
    """The clipboard text captured once per activation."""

    model_config = ConfigDict(frozen=True)

    raw_text: str = Field(..., description="Forwarded to jq unparsed.")
    parsed_ok: bool


class Query(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str


class ExecutionResult(BaseModel):
    """Outcome of one jq run for one (installation, document, query) triple."""

    model_config = ConfigDict(frozen=True)

    stdout: str = Field(default="")
    succeeded: bool
    error_detail: Optional[str] = Field(default=None)


# ---------------------------------------------------------------------------
# Per-source snapshots
# ---------------------------------------------------------------------------


class BinaryState(BaseModel):
    model_config = ConfigDict(frozen=True)

    checking: bool = True
    installation: Optional[BinaryInstallation] = None
    error: Optional[str] = None

    @property
    def ready(self) -> bool:
        return self.installation is not None


class DocumentState(BaseModel):
    model_config = ConfigDict(frozen=True)

    loading: bool = True
    document: Optional[SourceDocument] = None
    error: Optional[str] = None

    @property
    def ready(self) -> bool:
        return self.document is not None and self.document.parsed_ok


class ExecutionState(BaseModel):
    """
    Latest applied execution outcome.

    `result` keeps the last successful output (initially the raw document)
    so a failing or running query does not blank the copyable value.
    """

    model_config = ConfigDict(frozen=True)

    running: bool = False
    sequence: int = 0
    result: Optional[str] = None
    error: Optional[str] = None


class PipelineSnapshot(BaseModel):
    """Immutable view over the latest value of every pipeline source."""

    model_config = ConfigDict(frozen=True)

    binary: BinaryState = Field(default_factory=BinaryState)
    document: DocumentState = Field(default_factory=DocumentState)
    query: Optional[Query] = None
    execution: ExecutionState = Field(default_factory=ExecutionState)

    @property
    def is_loading(self) -> bool:
        return self.binary.checking or self.document.loading or self.execution.running


# ---------------------------------------------------------------------------
# Presentation
# ---------------------------------------------------------------------------


class DetailKind(str, Enum):
    DOCUMENT_ERROR = "document_error"
    LOADING = "loading"
    EMPTY_CLIPBOARD = "empty_clipboard"
    QUERY_ERROR = "query_error"
    RESULT = "result"
    AWAITING_QUERY = "awaiting_query"


class Details(BaseModel):
    """The single details block shown for a snapshot."""

    model_config = ConfigDict(frozen=True)

    kind: DetailKind
    markdown: str
