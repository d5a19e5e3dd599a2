"""Pydantic models describing bundle descriptors and project metadata."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator


class BundleTarget(str, Enum):
    NODE = "node"
    UNIVERSAL = "universal"


class ModuleReplacement(BaseModel):
    """Replacement for one resolved module path.

    Either redirects the import to ``path`` (optionally left ``external``) or
    substitutes inline ``contents`` parsed with ``loader``.
    """

    path: Optional[str] = None
    external: bool = False
    contents: Optional[str] = None
    loader: Optional[str] = None

    model_config = ConfigDict(extra="forbid", frozen=True)

    @model_validator(mode="before")
    @classmethod
    def _coerce_path(cls, value: Any) -> Any:
        if isinstance(value, str):
            return {"path": value}
        return value

    @model_validator(mode="after")
    def _check_source(self) -> "ModuleReplacement":
        if (self.path is None) == (self.contents is None):
            raise ValueError("Module replacement needs exactly one of 'path' or 'contents'.")
        return self


class TextReplacement(BaseModel):
    file: str = Field(..., description="Absolute file path, or '*' for every file.")
    find: str
    replacement: str

    model_config = ConfigDict(extra="forbid", frozen=True)


class BundleDescriptor(BaseModel):
    input: str
    output: str
    target: BundleTarget
    name: Optional[str] = Field(default=None, description="UMD global name.")
    external: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("external", "externals"),
    )
    babel_plugins: List[Any] = Field(
        default_factory=list,
        validation_alias=AliasChoices("babel_plugins", "babelPlugins", "pluginList"),
    )
    replace_module: Dict[str, ModuleReplacement] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("replace_module", "replaceModule"),
    )
    replace_text: List[TextReplacement] = Field(
        default_factory=list,
        validation_alias=AliasChoices("replace_text", "replaceText"),
    )
    minify: Optional[bool] = None
    skip_babel: bool = Field(
        default=False,
        validation_alias=AliasChoices("skip_babel", "skipBabel", "skipLegacyDownlevel"),
    )
    esbuild_target: Optional[List[str]] = Field(
        default=None,
        validation_alias=AliasChoices("esbuild_target", "esbuildTarget", "fixedBuildTargets"),
    )

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    @model_validator(mode="after")
    def _check_umd_name(self) -> "BundleDescriptor":
        if self.target is BundleTarget.UNIVERSAL and not self.name:
            raise ValueError(f"Universal bundle '{self.output}' requires a UMD 'name'.")
        return self

    @property
    def is_universal(self) -> bool:
        return self.target is BundleTarget.UNIVERSAL


class ProjectMetadata(BaseModel):
    """The subset of ``package.json`` the pipeline reads."""

    version: str
    browserslist: List[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="allow", frozen=True)

    @field_validator("browserslist", mode="before")
    @classmethod
    def _split_queries(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [query.strip() for query in value.split(",") if query.strip()]
        return value
