"""Types for the npm registry layer.

ReleaseRecord is the validated shape of one published package version.
The registry serves loosely-typed JSON; everything the formula generator
relies on is checked here so a bad payload fails before generation starts.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


class FetchError(Exception):
    """Raised when registry metadata or a tarball cannot be fetched.

    Also raised when the fetched metadata is missing required fields.
    Carries the URL and HTTP status (when there was one) for reporting.
    """

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        self.url = url
        self.status_code = status_code
        super().__init__(message)


class ReleaseRecord(BaseModel):
    """One publishable npm package version.

    ``bin`` keeps the registry's insertion order; the first entry is the
    executable the formula tests against. ``sha256`` is empty until the
    tarball has been hashed (see ``with_digest``).
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    version: str = Field(min_length=1)
    description: str = Field(min_length=1)
    homepage: str = Field(min_length=1)
    license: Optional[str] = None
    tarball: str
    sha256: Optional[str] = None
    bin: dict[str, str]

    @field_validator("tarball")
    @classmethod
    def tarball_is_http_url(cls, v: str) -> str:
        if not v.startswith(("https://", "http://")):
            raise ValueError(f"expected an http(s) URL, got {v!r}")
        return v

    @field_validator("bin")
    @classmethod
    def bin_not_empty(cls, v: dict[str, str]) -> dict[str, str]:
        if not v:
            raise ValueError("package declares no executables")
        return v

    @property
    def executable(self) -> str:
        return next(iter(self.bin))

    def with_digest(self, sha256: str) -> "ReleaseRecord":
        return self.model_copy(update={"sha256": sha256})

    @classmethod
    def from_registry(cls, payload: dict[str, Any]) -> "ReleaseRecord":
        """Build a record from a ``versions[<v>]`` entry of the registry document.

        Raises FetchError describing every missing or malformed field.
        """
        if not isinstance(payload, dict):
            raise FetchError(
                f"Invalid release metadata: expected an object, got {type(payload).__name__}"
            )

        name = payload.get("name")
        dist = payload.get("dist") or {}
        if not isinstance(dist, dict):
            raise FetchError(
                f"Invalid release metadata for {name or '<unknown>'}: "
                f"dist: expected an object, got {type(dist).__name__}"
            )

        data = {
            "name": name,
            "version": payload.get("version"),
            "description": payload.get("description"),
            "homepage": payload.get("homepage"),
            "license": _normalise_license(payload.get("license")),
            "tarball": dist.get("tarball"),
            "bin": _normalise_bin(name, payload.get("bin")),
        }

        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise FetchError(
                f"Invalid release metadata for {name or '<unknown>'}: {_describe(exc)}"
            ) from exc


def unscoped_name(name: str) -> str:
    """Strip the ``@scope/`` prefix from a scoped package name."""
    return name.rsplit("/", 1)[-1]


def _normalise_bin(name: Any, value: Any) -> Any:
    # "bin": "./cli.js" is shorthand for {"<unscoped name>": "./cli.js"}
    if isinstance(value, str) and isinstance(name, str):
        return {unscoped_name(name): value}
    if value is None:
        return {}
    return value


def _normalise_license(value: Any) -> Any:
    # Legacy documents use {"type": "MIT", "url": "..."}
    if isinstance(value, dict):
        return value.get("type")
    return value


def _describe(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        field = ".".join(str(p) for p in error["loc"]) or "<root>"
        parts.append(f"{field}: {error['msg']}")
    return "; ".join(parts)
