from typing import Any, Dict, Mapping, Optional, Union

from config import DEFAULT_POLICY
from .models import Policy, PolicyOverride


def default_policy() -> Policy:
    return Policy(**DEFAULT_POLICY)


def merge_policy(override: Optional[Union[PolicyOverride, Mapping[str, Any]]] = None) -> Policy:
    """
    Merge a partial policy over the defaults, field by field.

    Fields the caller left unset keep their default value. Restricted
    nationalities are lowercased by the Policy model itself, so the merged
    result always compares them case-insensitively.
    """
    if override is None:
        return default_policy()

    if not isinstance(override, PolicyOverride):
        override = PolicyOverride.model_validate(override)

    merged: Dict[str, Any] = dict(DEFAULT_POLICY)
    merged.update(override.model_dump(exclude_none=True))
    return Policy(**merged)
