from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


# (python attribute, wire name) for every built-in attribute that can be made private.
BUILTIN_ATTRIBUTES: Tuple[Tuple[str, str], ...] = (
    ("avatar", "avatar"),
    ("country", "country"),
    ("email", "email"),
    ("first_name", "firstName"),
    ("ip", "ip"),
    ("last_name", "lastName"),
    ("name", "name"),
    ("secondary", "secondary"),
)


class User(BaseModel):
    """
    A user record as supplied by the application.

    Instances are frozen: the event pipeline only ever reads them or builds
    redacted copies.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    key: Optional[str] = None
    secondary: Optional[str] = None
    ip: Optional[str] = None
    country: Optional[str] = None
    email: Optional[str] = None
    first_name: Optional[str] = Field(default=None, alias="firstName")
    last_name: Optional[str] = Field(default=None, alias="lastName")
    avatar: Optional[str] = None
    name: Optional[str] = None
    anonymous: Optional[bool] = None
    custom: Optional[Dict[str, Any]] = None
    private_attribute_names: List[str] = Field(default_factory=list, alias="privateAttributeNames")
    # populated only on redacted copies
    private_attrs: Optional[List[str]] = Field(default=None, alias="privateAttrs")

    def to_wire(self) -> Dict[str, Any]:
        out = self.model_dump(by_alias=True, exclude_none=True, exclude={"private_attribute_names"})
        if not out.get("privateAttrs"):
            out.pop("privateAttrs", None)
        return out


def new_user(key: str, **attrs: Any) -> User:
    return User(key=key, **attrs)


def new_anonymous_user(key: str) -> User:
    return User(key=key, anonymous=True)
