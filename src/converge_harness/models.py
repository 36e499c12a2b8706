# models.py
# Data contracts for the dry-run convergence harness.
# No convergence logic lives here — pure schema and validation.

from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# Provenance fields carried by every resource but never part of its state.
# All but `action` are set by the engine, never by recipe keywords.
METADATA_FIELDS = frozenset({"name", "action", "cookbook_name", "recipe_name", "defined_at"})


# ---------------------------------------------------------------------------
# Resources
# ---------------------------------------------------------------------------


class Resource(BaseModel):
    """
    A typed, named declaration of intended system state.

    Subclasses set `resource_type`, the actions they accept, and the
    `name_attribute` that falls back to `name` when not given explicitly.
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    resource_type: ClassVar[str] = "resource"
    allowed_actions: ClassVar[tuple[str, ...]] = ("nothing",)
    default_action: ClassVar[str] = "nothing"
    name_attribute: ClassVar[str | None] = None

    name: str = Field(..., min_length=1, description="Identifier used for lookups.")
    action: str = Field(..., description="Operation the resource intends to perform.")
    cookbook_name: str | None = Field(default=None, description="Declaring cookbook.")
    recipe_name: str | None = Field(default=None, description="Declaring recipe.")
    defined_at: str | None = Field(default=None, description="'<file>:<line>' of the declaration.")

    @model_validator(mode="before")
    @classmethod
    def _apply_defaults(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if data.get("action") is None:
            data["action"] = cls.default_action
        if cls.name_attribute and data.get(cls.name_attribute) is None:
            data[cls.name_attribute] = data.get("name")
        return data

    @field_validator("action")
    @classmethod
    def _check_action(cls, value: str) -> str:
        if value not in cls.allowed_actions:
            allowed = ", ".join(cls.allowed_actions)
            raise ValueError(f"{cls.resource_type} does not support action {value!r} (allowed: {allowed})")
        return value

    def state(self) -> dict[str, Any]:
        """Type-specific field values, without name, action or provenance."""
        return self.model_dump(exclude=set(METADATA_FIELDS))

    def __str__(self) -> str:
        return f"{self.resource_type}[{self.name}]"


class File(Resource):
    resource_type: ClassVar[str] = "file"
    allowed_actions: ClassVar[tuple[str, ...]] = ("create", "create_if_missing", "delete", "touch", "nothing")
    default_action: ClassVar[str] = "create"
    name_attribute: ClassVar[str | None] = "path"

    path: str
    content: str | None = None
    mode: str | None = None
    owner: str | None = None
    group: str | None = None


class Directory(Resource):
    resource_type: ClassVar[str] = "directory"
    allowed_actions: ClassVar[tuple[str, ...]] = ("create", "delete", "nothing")
    default_action: ClassVar[str] = "create"
    name_attribute: ClassVar[str | None] = "path"

    path: str
    mode: str | None = None
    owner: str | None = None
    group: str | None = None
    recursive: bool = False


class Package(Resource):
    resource_type: ClassVar[str] = "package"
    allowed_actions: ClassVar[tuple[str, ...]] = ("install", "upgrade", "remove", "purge", "nothing")
    default_action: ClassVar[str] = "install"
    name_attribute: ClassVar[str | None] = "package_name"

    package_name: str
    version: str | None = None


class Service(Resource):
    resource_type: ClassVar[str] = "service"
    allowed_actions: ClassVar[tuple[str, ...]] = (
        "nothing", "enable", "disable", "start", "stop", "restart", "reload",
    )
    default_action: ClassVar[str] = "nothing"
    name_attribute: ClassVar[str | None] = "service_name"

    service_name: str
    supports: dict[str, bool] = Field(default_factory=dict)


class Execute(Resource):
    resource_type: ClassVar[str] = "execute"
    allowed_actions: ClassVar[tuple[str, ...]] = ("run", "nothing")
    default_action: ClassVar[str] = "run"
    name_attribute: ClassVar[str | None] = "command"

    command: str
    cwd: str | None = None
    user: str | None = None
    environment: dict[str, str] = Field(default_factory=dict)
    creates: str | None = None


RESOURCES: dict[str, type[Resource]] = {
    cls.resource_type: cls for cls in (File, Directory, Package, Service, Execute)
}


# ---------------------------------------------------------------------------
# Recording
# ---------------------------------------------------------------------------


class ResourceDeclaration(BaseModel):
    """Immutable snapshot of a resource whose action was intercepted."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    resource_type: str
    identifier: str
    action: str
    cookbook_name: str | None = None
    recipe_name: str | None = None
    defined_at: str | None = None
    attributes: dict[str, Any] = Field(default_factory=dict)
    resource: Any = Field(default=None, exclude=True, repr=False)

    @classmethod
    def from_resource(cls, resource: Any, action: str) -> "ResourceDeclaration":
        """
        Snapshot `resource` as it stands when `action` fires.

        Works with any object exposing `resource_type` and `name`; provenance
        and state are picked up only when the object provides them.
        """
        state = resource.state() if hasattr(resource, "state") else {}
        return cls(
            resource_type=resource.resource_type,
            identifier=resource.name,
            action=action,
            cookbook_name=getattr(resource, "cookbook_name", None),
            recipe_name=getattr(resource, "recipe_name", None),
            defined_at=getattr(resource, "defined_at", None),
            attributes=state,
            resource=resource,
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ResourceDeclaration):
            return NotImplemented
        return self.model_dump() == other.model_dump()

    def __hash__(self) -> int:
        return hash((self.resource_type, self.identifier, self.action, self.defined_at))

    def __str__(self) -> str:
        return f"{self.resource_type}[{self.identifier}]"


# ---------------------------------------------------------------------------
# Node
# ---------------------------------------------------------------------------


class Node(BaseModel):
    """The target system: its attributes and the run-list converged so far."""

    name: str = Field(..., min_length=1)
    attributes: dict[str, Any] = Field(default_factory=dict)
    run_list: list[str] = Field(default_factory=list)

    def __getitem__(self, key: str) -> Any:
        return self.attributes[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self.attributes[key] = value

    def __contains__(self, key: object) -> bool:
        return key in self.attributes

    def get(self, key: str, default: Any = None) -> Any:
        return self.attributes.get(key, default)

    def add_to_run_list(self, item: str) -> bool:
        """Append a normalized run-list item. Returns False if already present."""
        if item in self.run_list:
            return False
        self.run_list.append(item)
        return True
