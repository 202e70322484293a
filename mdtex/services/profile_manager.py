"""
Profile state management.

apply_event is a pure reducer over ProfileState/Settings: it never mutates
its input and returns the input unchanged for invalid events. ProfileStore
persists Settings as YAML and migrates older layouts on load.
"""

from pathlib import Path
from typing import Annotated, Any, Literal, TypeVar, Union

import yaml
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from mdtex.models.profile import DEFAULT_PROFILE_NAME, Profile, ProfileState, Settings
from mdtex.utils.logger import get_logger

logger = get_logger(__name__)

StateT = TypeVar("StateT", bound=ProfileState)

GLOBAL_SETTINGS = (
    "suppress_developer_logs",
    "enable_markdownlint_fix",
    "markdownlint_cli2_path",
    "enable_experimental_mermaid",
    "mermaid_cli_path",
)


class AddProfile(BaseModel):
    """Create a profile (copied from base or defaults) and make it active."""

    type: Literal["add"] = "add"
    name: str
    base: Profile | None = None


class RemoveProfile(BaseModel):
    """Delete a profile; the last remaining profile cannot be removed."""

    type: Literal["remove"] = "remove"
    name: str


class RenameProfile(BaseModel):
    """Rename a profile, keeping it active if it was."""

    type: Literal["rename"] = "rename"
    old_name: str
    new_name: str


class SetActiveProfile(BaseModel):
    """Switch the active profile."""

    type: Literal["set_active"] = "set_active"
    name: str


class UpdateProfile(BaseModel):
    """Change fields of a profile (snake_case or legacy camelCase keys)."""

    type: Literal["update"] = "update"
    name: str
    changes: dict[str, Any] = Field(default_factory=dict)


ProfileEvent = Annotated[
    Union[AddProfile, RemoveProfile, RenameProfile, SetActiveProfile, UpdateProfile],
    Field(discriminator="type"),
]


def create_default_profile() -> Profile:
    """Fresh profile with documented defaults."""
    return Profile()


def _field_name(key: str) -> str | None:
    if key in Profile.model_fields:
        return key
    for name, field in Profile.model_fields.items():
        if field.alias == key:
            return name
    return None


def _with_profiles(state: StateT, profiles: dict[str, Profile], active: str) -> StateT:
    return state.model_copy(update={"profiles": profiles, "active_profile": active})


def add_profile(state: StateT, name: str, base: Profile | None = None) -> StateT:
    """
    Add a profile and make it active.

    Args:
        state: Current state
        name: New profile name (trimmed)
        base: Profile to copy, defaults when omitted

    Returns:
        New state, or state unchanged for blank/duplicate names
    """
    name = name.strip()
    if not name or name in state.profiles:
        return state
    profile = base.model_copy(deep=True) if base else create_default_profile()
    return _with_profiles(state, {**state.profiles, name: profile}, name)


def remove_profile(state: StateT, name: str) -> StateT:
    """
    Remove a profile, falling back to the first remaining one if it was active.

    Args:
        state: Current state
        name: Profile to remove

    Returns:
        New state, or state unchanged if unknown or the last profile
    """
    if name not in state.profiles or len(state.profiles) <= 1:
        return state
    profiles = {key: value for key, value in state.profiles.items() if key != name}
    active = state.active_profile
    if active == name:
        active = next(iter(profiles), DEFAULT_PROFILE_NAME)
    return _with_profiles(state, profiles, active)


def rename_profile(state: StateT, old_name: str, new_name: str) -> StateT:
    """Rename a profile in place, preserving order."""
    new_name = new_name.strip()
    if old_name not in state.profiles or not new_name or new_name in state.profiles:
        return state
    profiles = {
        (new_name if key == old_name else key): value for key, value in state.profiles.items()
    }
    active = new_name if state.active_profile == old_name else state.active_profile
    return _with_profiles(state, profiles, active)


def set_active_profile(state: StateT, name: str) -> StateT:
    """Activate an existing profile."""
    if name not in state.profiles or name == state.active_profile:
        return state
    return state.model_copy(update={"active_profile": name})


def update_profile(state: StateT, name: str, changes: dict[str, Any]) -> StateT:
    """
    Apply field changes to a profile.

    Args:
        state: Current state
        name: Profile to update
        changes: Field values keyed by field name or legacy alias

    Returns:
        New state, or state unchanged for unknown profiles/fields or invalid values
    """
    if name not in state.profiles:
        return state

    normalized: dict[str, Any] = {}
    for key, value in changes.items():
        field = _field_name(key)
        if field is None:
            logger.warning(f"Ignoring update of profile {name}: unknown field {key}")
            return state
        normalized[field] = value

    try:
        updated = Profile.model_validate({**state.profiles[name].model_dump(), **normalized})
    except PydanticValidationError as e:
        logger.warning(f"Ignoring invalid update of profile {name}: {e.error_count()} error(s)")
        return state

    return _with_profiles(state, {**state.profiles, name: updated}, state.active_profile)


def apply_event(state: StateT, event: BaseModel) -> StateT:
    """
    Reduce one profile event into a new state.

    Args:
        state: Current state (not mutated)
        event: AddProfile, RemoveProfile, RenameProfile, SetActiveProfile or UpdateProfile

    Returns:
        Next state
    """
    if isinstance(event, AddProfile):
        return add_profile(state, event.name, event.base)
    if isinstance(event, RemoveProfile):
        return remove_profile(state, event.name)
    if isinstance(event, RenameProfile):
        return rename_profile(state, event.old_name, event.new_name)
    if isinstance(event, SetActiveProfile):
        return set_active_profile(state, event.name)
    if isinstance(event, UpdateProfile):
        return update_profile(state, event.name, event.changes)
    raise TypeError(f"Unsupported profile event: {type(event).__name__}")


def _coerce_profile(name: str, data: Any) -> Profile:
    if not isinstance(data, dict):
        logger.warning(f"Profile {name} is not a mapping; using defaults")
        return create_default_profile()
    # Invalid fields fall back to their defaults; the rest of the profile is kept
    while True:
        try:
            return Profile.model_validate(data)
        except PydanticValidationError as e:
            invalid = {_field_name(str(error["loc"][0])) for error in e.errors() if error["loc"]}
            invalid.discard(None)
            kept = {key: value for key, value in data.items() if _field_name(str(key)) not in invalid}
            if not invalid or len(kept) == len(data):
                logger.warning(f"Profile {name} is invalid ({e.error_count()} error(s)); using defaults")
                return create_default_profile()
            logger.warning(f"Profile {name}: resetting invalid field(s) {', '.join(sorted(invalid))}")
            data = kept


def _profiles_from_list(items: list[Any]) -> dict[str, Profile]:
    profiles: dict[str, Profile] = {}
    for item in items:
        name = (item.get("name") if isinstance(item, dict) else None) or DEFAULT_PROFILE_NAME
        profiles[str(name)] = _coerce_profile(str(name), item)
    return profiles


def _build_profiles(raw: dict[str, Any]) -> dict[str, Profile]:
    if isinstance(raw.get("profilesArray"), list):
        profiles = _profiles_from_list(raw["profilesArray"])
    elif isinstance(raw.get("profiles"), list):
        profiles = _profiles_from_list(raw["profiles"])
    elif isinstance(raw.get("profiles"), dict):
        profiles = {str(name): _coerce_profile(str(name), data) for name, data in raw["profiles"].items()}
    else:
        profiles = {DEFAULT_PROFILE_NAME: _coerce_profile(DEFAULT_PROFILE_NAME, raw)}
    return profiles or {DEFAULT_PROFILE_NAME: create_default_profile()}


def _global_value(raw: dict[str, Any], field: str) -> Any:
    alias = Settings.model_fields[field].alias
    if field in raw:
        return raw[field]
    if alias and alias in raw:
        return raw[alias]
    return Settings.model_fields[field].default


def migrate_settings(raw: Any) -> Settings:
    """
    Build Settings from any supported persisted shape.

    Accepted shapes: nothing, profilesArray/profiles lists of named profiles,
    a profiles mapping, or a bare single profile. Missing fields take
    defaults, unknown keys are ignored.

    Args:
        raw: Parsed settings data

    Returns:
        Settings with at least one profile and a valid active profile
    """
    if not raw:
        return Settings()
    if not isinstance(raw, dict):
        logger.warning(f"Settings data is a {type(raw).__name__}, expected a mapping; using defaults")
        return Settings()

    profiles = _build_profiles(raw)
    active = (
        raw.get("currentProfileName") or raw.get("activeProfile") or raw.get("active_profile") or ""
    )
    if active not in profiles:
        active = next(iter(profiles))

    globals_ = {
        field: _global_value(raw, field)
        for field in GLOBAL_SETTINGS
    }
    try:
        return Settings(profiles=profiles, active_profile=active, **globals_)
    except PydanticValidationError as e:
        logger.warning(f"Invalid global settings ({e.error_count()} error(s)); using defaults")
        return Settings(profiles=profiles, active_profile=active)


class ProfileStore:
    """YAML-backed Settings persistence."""

    def __init__(self, path: str | Path):
        """
        Initialize store.

        Args:
            path: Settings YAML file
        """
        self.path = Path(path)

    def load(self) -> Settings:
        """
        Load and migrate settings.

        A missing file yields defaults; malformed YAML yields defaults with a warning.

        Returns:
            Settings
        """
        if not self.path.exists():
            logger.debug(f"Settings file {self.path} not found; using defaults")
            return Settings()

        try:
            with open(self.path, encoding="utf-8") as f:
                raw = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Could not read settings file {self.path}: {e}; using defaults")
            return Settings()

        return migrate_settings(raw)

    def save(self, settings: Settings) -> None:
        """
        Write settings as YAML.

        Args:
            settings: Settings to persist
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            yaml.safe_dump(settings.model_dump(mode="json"), f, sort_keys=False, allow_unicode=True)
        logger.debug(f"Saved settings to {self.path}")
