"""Request and result schemas exchanged with the playground front end."""

from enum import Enum
from typing import Any
from typing import Literal

from pydantic import BaseModel
from pydantic import Field


class SourceKind(str, Enum):
    """Kinds of in-memory source documents."""

    SVELTE = "svelte"
    JS = "js"
    CSS = "css"
    JSON = "json"


class Target(str, Enum):
    """Artifact kinds produced from the same sources."""

    DOM = "dom"
    SSR = "ssr"


class SourceDocument(BaseModel):
    """One editable file in the playground."""

    name: str = Field(description="File name without extension, e.g. 'App'")
    type: SourceKind = Field(description="Document kind, used as the file extension")
    source: str = Field(default="", description="Document contents")

    @property
    def path(self) -> str:
        """Logical path used as the module id, e.g. './App.svelte'."""
        return f"./{self.name}.{self.type.value}"


class BundleRequest(BaseModel):
    """A bundle request tagged with its generation token."""

    uid: int = Field(description="Generation token; strictly increasing per request")
    components: list[SourceDocument] = Field(default_factory=list)


class CompileWarning(BaseModel):
    """Warning emitted by the component compiler."""

    message: str
    filename: str | None = None
    start: dict[str, int] | None = None
    end: dict[str, int] | None = None


class BundlerWarning(BaseModel):
    """Warning emitted by the bundling engine."""

    message: str


class TargetOutput(BaseModel):
    """Generated code for one target."""

    code: str
    map: dict[str, Any] | str | None = None


class BundleErrorInfo(BaseModel):
    """Serializable form of the error that failed a request."""

    message: str
    stack: str = ""
    details: dict[str, Any] = Field(default_factory=dict)


class BundleResult(BaseModel):
    """Outcome of one request, posted back to the caller."""

    type: Literal["result"] = "result"
    uid: int
    dom: TargetOutput | None = None
    ssr: TargetOutput | None = None
    imports: list[str] | None = None
    warnings: list[CompileWarning] = Field(default_factory=list)
    bundler_warnings: list[BundlerWarning] = Field(default_factory=list)
    error: BundleErrorInfo | None = None

    @property
    def ok(self) -> bool:
        return self.error is None
