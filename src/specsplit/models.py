"""Canonical Pydantic models shared across all specsplit modules.

This is the single source of truth for data shapes in the project. Every other
module imports from here rather than defining its own models. The models fall
into three groups:

**Configuration models** -- loaded from ``specsplit.yaml`` (or built from
defaults) and threaded explicitly through every service constructor:
    :class:`PathsConfig`, :class:`BehaviorConfig`, :class:`AdvancedConfig`,
    :class:`NamingConfig`, :class:`AffixesConfig`,
    :class:`SchemaModularizationConfig`, :class:`ResponseNamingConfig`,
    :class:`ParametersConfig`, and :class:`ModularizeConfig`.

**Document models** -- the validated, immutable input:
    :class:`OpenAPIDocument` and the :class:`StatusCode` value object.

**Stage results** -- what the extraction and validation stages hand to the
next stage:
    :class:`ResponseNormalizationResult`, :class:`ResponseExtractionResult`,
    :class:`ExtractedParameter`, :class:`ParameterExtractionResult`, and
    :class:`ValidationResult`.

The mutable modularization model itself (units plus the composite-key index)
lives in :mod:`specsplit.modularization.entities`.
"""

from __future__ import annotations

import copy
import enum
import re
from typing import Any, ClassVar, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from specsplit.exceptions import InputError


# --- Enumerations ---


class HTTPMethod(str, enum.Enum):
    """HTTP methods that may appear as operation keys in a path item."""

    GET = "get"
    PUT = "put"
    POST = "post"
    DELETE = "delete"
    OPTIONS = "options"
    HEAD = "head"
    PATCH = "patch"
    TRACE = "trace"


class ParameterLocation(str, enum.Enum):
    """Where a parameter lives in the HTTP request (the ``in`` field)."""

    PATH = "path"
    QUERY = "query"
    HEADER = "header"
    COOKIE = "cookie"


class ComponentCategory(str, enum.Enum):
    """The ``components`` sections that are split into their own files."""

    SCHEMAS = "schemas"
    RESPONSES = "responses"
    PARAMETERS = "parameters"
    REQUEST_BODIES = "requestBodies"
    EXAMPLES = "examples"
    HEADERS = "headers"
    SECURITY_SCHEMES = "securitySchemes"
    LINKS = "links"
    CALLBACKS = "callbacks"
    PATH_ITEMS = "pathItems"


class NamingConvention(str, enum.Enum):
    """Supported naming conventions for generated names and file names."""

    PASCAL_CASE = "PascalCase"
    CAMEL_CASE = "camelCase"
    SNAKE_CASE = "snake_case"
    KEBAB_CASE = "kebab-case"
    LOWERCASE = "lowercase"
    UPPERCASE = "UPPERCASE"


# --- Status codes ---


_STATUS_IN_NAME = re.compile(r"\d{3}")
_STATUS_RANGE = re.compile(r"^([1-5])xx$", re.IGNORECASE)


class StatusCode(BaseModel):
    """An HTTP status code, or the literal ``default``.

    ``code`` is ``None`` for ``default``. Only 100-599 are considered real
    status codes; anything else collapses to ``default``.
    """

    model_config = ConfigDict(frozen=True)

    code: Optional[int] = None

    @classmethod
    def parse(cls, value: Any) -> StatusCode:
        """Parse a response-map key such as ``"200"``, ``404`` or ``"default"``."""
        text = str(value).strip()
        if text.isdigit() and len(text) == 3 and 100 <= int(text) <= 599:
            return cls(code=int(text))
        return cls()

    @classmethod
    def from_name(cls, name: str) -> StatusCode:
        """Extract the first 3-digit run embedded in a component name.

        ``"Error404"`` yields 404; ``"LegacyFallback"`` yields ``default``.
        """
        match = _STATUS_IN_NAME.search(name or "")
        if match is None:
            return cls()
        return cls.parse(match.group(0))

    @property
    def is_default(self) -> bool:
        return self.code is None

    @property
    def is_success(self) -> bool:
        return self.code is not None and 200 <= self.code < 300

    @property
    def is_client_error(self) -> bool:
        return self.code is not None and 400 <= self.code < 500

    @property
    def is_server_error(self) -> bool:
        return self.code is not None and 500 <= self.code < 600

    @property
    def is_error(self) -> bool:
        return self.is_client_error or self.is_server_error

    def matches(self, pattern: str) -> bool:
        """Match against ``"404"``, ``"4xx"`` style patterns or ``"default"``."""
        pattern = str(pattern).strip()
        if pattern.lower() == "default":
            return self.is_default
        if self.code is None:
            return False
        range_match = _STATUS_RANGE.match(pattern)
        if range_match:
            return self.code // 100 == int(range_match.group(1))
        return pattern.isdigit() and int(pattern) == self.code

    def __str__(self) -> str:
        return "default" if self.code is None else str(self.code)


# --- Configuration ---


DEFAULT_STATUS_NAMES: dict[str, str] = {
    "200": "Ok",
    "201": "Created",
    "204": "NoContent",
    "400": "BadRequest",
    "401": "Unauthorized",
    "403": "Forbidden",
    "404": "NotFound",
    "405": "MethodNotAllowed",
    "409": "Conflict",
    "422": "UnprocessableEntity",
    "429": "TooManyRequests",
    "500": "InternalServerError",
    "501": "NotImplemented",
    "502": "BadGateway",
    "503": "ServiceUnavailable",
    "504": "GatewayTimeout",
    "default": "UnexpectedError",
}
"""Semantic names used for responses keyed by their status code."""

DEFAULT_RESPONSE_ERROR_PATTERNS: list[str] = [
    "error",
    "exception",
    "fault",
    "problem",
    "unexpected",
    "badrequest",
    "unauthorized",
    "forbidden",
    "notfound",
    "toomany",
    "internalserver",
    "gateway",
    "serviceunavailable",
    "timeout",
    "unprocessable",
    "methodnotallowed",
    "invalid",
]
"""Substrings that make a response name look error-like when scoring."""

DEFAULT_SCHEMA_ERROR_PATTERNS: list[str] = [
    "error",
    "exception",
    "fault",
    "problem",
    "apierror",
    "apiexception",
]
"""Substrings that route a schema into the ``error`` bucket."""

DEFAULT_GENERIC_SCHEMA_NAMES: list[str] = [
    "text",
    "name",
    "value",
    "datetime",
    "date",
    "time",
    "identifier",
    "code",
    "description",
    "amount",
    "quantity",
    "status",
    "type",
    "id",
    "reference",
]
"""Schema names that never receive the configured schema suffix."""

_SUPPORTED_EXTENSIONS = (".yaml", ".yml", ".json")


class PathsConfig(BaseModel):
    """Input/output locations and the entrypoint file name."""

    input: Optional[str] = Field(
        default=None, description="Default source document (file, URL, or '-')"
    )
    output: str = Field(default="./src", description="Output directory")
    main_file_name: str = Field(
        default="main", description="Entrypoint file name without extension"
    )


class BehaviorConfig(BaseModel):
    """Toggles for the optional pipeline stages and the write strategy."""

    clean_output: bool = Field(
        default=True, description="Replace the output directory instead of overlaying it"
    )
    reorder_operations: bool = Field(
        default=True, description="Write operation keys in canonical order"
    )
    extract_responses: bool = Field(
        default=True, description="Extract repeated inline responses into components"
    )
    extract_parameters: bool = Field(
        default=True, description="Extract repeated inline parameters into components"
    )


class AdvancedConfig(BaseModel):
    """Low-level output settings."""

    file_extension: str = Field(default=".yaml", description=".yaml, .yml or .json")

    @field_validator("file_extension")
    @classmethod
    def _check_extension(cls, value: str) -> str:
        value = value.strip().lower()
        if not value.startswith("."):
            value = "." + value
        if value not in _SUPPORTED_EXTENSIONS:
            raise ValueError(
                f"unsupported file extension {value!r}; "
                f"expected one of {', '.join(_SUPPORTED_EXTENSIONS)}"
            )
        return value


class NamingConfig(BaseModel):
    """Naming convention per output kind.

    Values are plain strings so that an unknown convention reaches the name
    normalizer, which warns and falls back to PascalCase.
    """

    components: str = Field(default=NamingConvention.PASCAL_CASE.value)
    paths: str = Field(default=NamingConvention.KEBAB_CASE.value)


class AffixesConfig(BaseModel):
    """Prefix/suffix tables applied to component file names, keyed by category."""

    enabled: bool = Field(default=True)
    prefixes: dict[str, str] = Field(default_factory=dict)
    suffixes: dict[str, str] = Field(default_factory=dict)
    use_enum_suffix: bool = Field(
        default=False, description="Give string-enum schemas the enum suffix"
    )
    enum_suffix: str = Field(default="Enum")
    exclude_from_suffix: list[str] = Field(
        default_factory=lambda: list(DEFAULT_GENERIC_SCHEMA_NAMES),
        description="Schema names that never receive the schema suffix",
    )


class SchemaBuckets(BaseModel):
    """Directory names used for each schema sub-category."""

    enum: str = "enum"
    model: str = "model"
    value: str = "value"
    error: str = "error"


class SchemaModularizationConfig(BaseModel):
    """Controls the split of ``components/schemas`` into sub-directories."""

    enabled: bool = Field(default=True)
    buckets: SchemaBuckets = Field(default_factory=SchemaBuckets)
    error_name_patterns: list[str] = Field(
        default_factory=lambda: list(DEFAULT_SCHEMA_ERROR_PATTERNS)
    )


class ResponseNamingConfig(BaseModel):
    """How existing and extracted responses are named."""

    enabled: bool = Field(default=True)
    naming_convention: str = Field(default=NamingConvention.PASCAL_CASE.value)
    remove_status_code_from_name: bool = Field(default=True)
    ensure_response_suffix: bool = Field(default=True)
    include_status_code_in_name: bool = Field(default=False)
    use_semantic_names: bool = Field(default=True)
    status_names: dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_STATUS_NAMES)
    )
    preserve_custom_names: list[str] = Field(
        default_factory=list,
        description="Status patterns ('404', '4xx', 'default') whose custom names are kept",
    )
    error_name_patterns: list[str] = Field(
        default_factory=lambda: list(DEFAULT_RESPONSE_ERROR_PATTERNS)
    )
    use_generic_descriptions: bool = Field(
        default=False, description="Replace descriptions with a generic text per status"
    )

    @field_validator("status_names", mode="before")
    @classmethod
    def _stringify_status_keys(cls, value: Any) -> Any:
        # YAML loads unquoted 200 as an int.
        if isinstance(value, dict):
            return {str(k): v for k, v in value.items()}
        return value

    @field_validator("preserve_custom_names", mode="before")
    @classmethod
    def _stringify_patterns(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [str(v) for v in value]
        return value


class ParametersConfig(BaseModel):
    """Parameter extraction thresholds."""

    min_occurrences: int = Field(
        default=2, ge=2, description="Occurrences needed before a parameter is shared"
    )


class ModularizeConfig(BaseModel):
    """Top-level modularization configuration.

    Loaded by :func:`~specsplit.config.load_modularize_config`. A config file
    must declare every section listed in :attr:`REQUIRED_SECTIONS`; the other
    sections fall back to their defaults.

    Example::

        paths:
          output: ./src
          main_file_name: openapi
        naming:
          components: PascalCase
          paths: kebab-case
        affixes:
          enabled: true
          suffixes:
            schemas: Schema
    """

    REQUIRED_SECTIONS: ClassVar[tuple[str, ...]] = ("paths", "naming", "affixes")

    paths: PathsConfig = Field(default_factory=PathsConfig)
    behavior: BehaviorConfig = Field(default_factory=BehaviorConfig)
    advanced: AdvancedConfig = Field(default_factory=AdvancedConfig)
    naming: NamingConfig = Field(default_factory=NamingConfig)
    affixes: AffixesConfig = Field(default_factory=AffixesConfig)
    modularize_schemas: SchemaModularizationConfig = Field(
        default_factory=SchemaModularizationConfig
    )
    response_naming: ResponseNamingConfig = Field(default_factory=ResponseNamingConfig)
    parameters: ParametersConfig = Field(default_factory=ParametersConfig)


# --- Document ---


_SUPPORTED_VERSION = re.compile(r"^3\.\d+(\.\d+)?$")


def _stringify_keys(node: Any) -> Any:
    """Copy *node* with every mapping key as a string.

    YAML loads unquoted status codes (``200:``) as integers.
    """
    if isinstance(node, dict):
        return {str(k): _stringify_keys(v) for k, v in node.items()}
    if isinstance(node, list):
        return [_stringify_keys(v) for v in node]
    return node


class OpenAPIDocument(BaseModel):
    """An immutable, validated OpenAPI 3.x document.

    Built with :meth:`from_dict`, which enforces the version pattern and the
    required ``info`` fields. Pipeline stages never mutate a document; they
    call :meth:`evolve` to get a new one with some sections replaced.

    Root-level ``x-*`` keys are kept in :attr:`extensions` so they can be
    written back to the entrypoint.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    openapi: str
    info: dict[str, Any]
    servers: Optional[list[Any]] = None
    tags: Optional[list[Any]] = None
    security: Optional[list[Any]] = None
    external_docs: Optional[dict[str, Any]] = Field(default=None, alias="externalDocs")
    paths: dict[str, Any] = Field(default_factory=dict)
    components: dict[str, Any] = Field(default_factory=dict)
    extensions: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> OpenAPIDocument:
        """Validate a raw document dict and build an :class:`OpenAPIDocument`.

        Args:
            data: The parsed JSON/YAML document.

        Returns:
            A new document holding deep copies of the input sections.

        Raises:
            InputError: If the version is missing or unsupported, or if
                ``info.title`` / ``info.version`` are missing.
        """
        if not isinstance(data, dict):
            raise InputError("OpenAPI document must be a mapping")
        data = _stringify_keys(data)
        if "swagger" in data:
            raise InputError(
                f"Swagger {data['swagger']} is not supported. "
                "Only OpenAPI 3.x documents can be modularized."
            )

        version = data.get("openapi")
        if version is None:
            raise InputError("Missing 'openapi' field. Is this an OpenAPI 3.x document?")
        version = str(version)
        if not _SUPPORTED_VERSION.match(version):
            raise InputError(f"Unsupported OpenAPI version: {version}")

        info = data.get("info")
        if not isinstance(info, dict):
            raise InputError("Missing 'info' object")
        for required in ("title", "version"):
            if not str(info.get(required) or "").strip():
                raise InputError(f"Missing required field 'info.{required}'")

        paths = data.get("paths") or {}
        components = data.get("components") or {}
        if not isinstance(paths, dict):
            raise InputError("'paths' must be a mapping")
        if not isinstance(components, dict):
            raise InputError("'components' must be a mapping")

        return cls(
            openapi=version,
            info=copy.deepcopy(info),
            servers=copy.deepcopy(data.get("servers")),
            tags=copy.deepcopy(data.get("tags")),
            security=copy.deepcopy(data.get("security")),
            external_docs=copy.deepcopy(data.get("externalDocs")),
            paths=copy.deepcopy(paths),
            components=copy.deepcopy(components),
            extensions={
                k: copy.deepcopy(v)
                for k, v in data.items()
                if isinstance(k, str) and k.startswith("x-")
            },
        )

    def evolve(self, **changes: Any) -> OpenAPIDocument:
        """Return a copy of this document with some sections replaced."""
        return self.model_copy(update=copy.deepcopy(changes))

    def to_dict(self) -> dict[str, Any]:
        """Render the document back into plain OpenAPI form."""
        out: dict[str, Any] = {"openapi": self.openapi, "info": copy.deepcopy(self.info)}
        if self.servers is not None:
            out["servers"] = copy.deepcopy(self.servers)
        if self.tags is not None:
            out["tags"] = copy.deepcopy(self.tags)
        if self.security is not None:
            out["security"] = copy.deepcopy(self.security)
        if self.external_docs is not None:
            out["externalDocs"] = copy.deepcopy(self.external_docs)
        out["paths"] = copy.deepcopy(self.paths)
        if self.components:
            out["components"] = copy.deepcopy(self.components)
        out.update(copy.deepcopy(self.extensions))
        return out


# --- Stage results ---


class ResponseNormalizationResult(BaseModel):
    """Outcome of normalizing the existing ``components.responses``.

    Attributes:
        normalized: Final name to canonical response content.
        name_mapping: Every original name to its canonical final name.
        ref_mapping: ``#/components/responses/<old>`` to the new pointer,
            only for names that changed.
    """

    normalized: dict[str, Any] = Field(default_factory=dict)
    name_mapping: dict[str, str] = Field(default_factory=dict)
    ref_mapping: dict[str, str] = Field(default_factory=dict)


class ResponseExtractionResult(BaseModel):
    """Outcome of extracting inline responses from the path map.

    Attributes:
        units: New component name to response content.
        reference_map: ``route -> method -> status -> component name`` for
            every inline occurrence that now points at a shared component.
    """

    units: dict[str, Any] = Field(default_factory=dict)
    reference_map: dict[str, dict[str, dict[str, str]]] = Field(default_factory=dict)


class ExtractedParameter(BaseModel):
    """A parameter promoted to a shared component."""

    name: str
    location: ParameterLocation
    content: dict[str, Any]
    occurrences: int = 0

    @property
    def key(self) -> str:
        """Composite key string, e.g. ``parameters:path:id``."""
        return f"{ComponentCategory.PARAMETERS.value}:{self.location.value}:{self.name.lower()}"


class ParameterExtractionResult(BaseModel):
    """Outcome of parameter extraction.

    Attributes:
        units: Composite key string to the extracted parameter.
        reference_map: ``route -> ("parameters" | method) -> list`` aligned
            with the original parameter list; each slot holds the key of the
            unit that replaces it, or ``None`` when it stays inline.
    """

    units: dict[str, ExtractedParameter] = Field(default_factory=dict)
    reference_map: dict[str, dict[str, list[Optional[str]]]] = Field(default_factory=dict)


class ValidationResult(BaseModel):
    """Result of :meth:`~specsplit.modularization.validator.ModelValidator.validate`."""

    valid: bool
    errors: list[str] = Field(default_factory=list)
    unresolved: int = 0
