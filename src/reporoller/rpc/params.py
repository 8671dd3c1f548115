"""Per-method RPC parameter models.

Each handler validates its raw params against one of these models before
doing any work, so malformed params surface as INVALID_PARAMS instead of
failing somewhere inside the handler.
"""

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from reporoller.config.resolve import OptionOverrides


class NoParams(BaseModel):
    """Methods that take no parameters; unknown keys are ignored."""


class RootParams(BaseModel):
    """Params naming a project root."""

    root: str = "."

    def project_root(self) -> Path:
        """Canonical cache key for the root."""
        return Path(self.root).expanduser().resolve()


class ProjectScanParams(OptionOverrides, RootParams):
    force: bool = False


class BundleGenerateParams(OptionOverrides, RootParams):
    """Params for bundle.generate.

    ``outFile`` writes the rendered bundle to disk (relative paths resolve
    against the project root). ``returnContent`` includes the rendered text
    in the result.
    """

    return_content: bool = False


class TokensEstimateParams(RootParams):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    # Estimate for every known provider instead of the default three
    all_providers: bool = False


class HistoryListParams(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    limit: int = Field(default=20, ge=1)
    offset: int = Field(default=0, ge=0)
    project: str | None = None


class HistoryGetParams(BaseModel):
    # Id prefix, or an integer index where negative counts from the end
    id: str | int


class CacheClearParams(BaseModel):
    project: str | None = None
