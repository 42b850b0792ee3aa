from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from flagsync.core.users import BUILTIN_ATTRIBUTES, User


def scrub_user(user: User, all_attributes_private: bool, global_private_names: Iterable[str] = ()) -> Tuple[User, List[str]]:
    """
    Return a redacted copy of `user` plus the names of the attributes removed.

    The private set is the union of the global names and the user's own
    private_attribute_names. `key` and `anonymous` are never removed. When
    nothing is private the user comes back as-is, without a privateAttrs list.
    """
    global_names = set(global_private_names or ())
    if not user.private_attribute_names and not global_names and not all_attributes_private:
        if user.private_attrs is None:
            return user, []
        return user.model_copy(update={"private_attrs": None}), []

    private = global_names | set(user.private_attribute_names)

    def is_private(name: str) -> bool:
        return all_attributes_private or name in private

    removed: List[str] = []
    update: Dict[str, Any] = {}

    if user.custom is not None:
        custom: Dict[str, Any] = {}
        for k, v in user.custom.items():
            if is_private(k):
                removed.append(k)
            else:
                custom[k] = v
        update["custom"] = custom

    for attr, wire in BUILTIN_ATTRIBUTES:
        value = getattr(user, attr)
        if value is not None and value != "" and is_private(wire):
            update[attr] = None
            removed.append(wire)

    update["private_attrs"] = list(removed) or None
    return user.model_copy(update=update), removed


@dataclass(frozen=True)
class UserFilter:
    all_attributes_private: bool = False
    private_attribute_names: Tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_config(cls, cfg: Any) -> "UserFilter":
        return cls(
            all_attributes_private=bool(getattr(cfg, "all_attributes_private", False)),
            private_attribute_names=tuple(getattr(cfg, "private_attribute_names", None) or ()),
        )

    def scrub(self, user: Optional[User]) -> Optional[User]:
        if user is None:
            return None
        scrubbed, _ = scrub_user(user, self.all_attributes_private, self.private_attribute_names)
        return scrubbed
