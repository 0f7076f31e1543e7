"""Environments and their variables, plus the active-environment selection."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from cellstore.backends import FileBackend, KeyValueBackend, KeyValueStore, LocalStorage
from cellstore.cell import PersistentCell
from cellstore.codecs import model_list_codec
from cellstore.computed import ComputedCell, computed
from cellstore.errors import ValidationError
from cellstore.models import Environment, Variable
from cellstore.registry import CellRegistry
from cellstore.workspace import local_storage_path, store_path

logger = logging.getLogger(__name__)

ENVIRONMENTS_FILE = "env.json"
ACTIVE_ENVIRONMENT_KEY = "app-active-environment-id"
GLOBALS_NAME = "Globals"


def validate_environment(env: dict[str, Any]) -> list[str]:
    errors = []
    if not env.get("id"):
        errors.append("Missing required field: id")
    if not isinstance(env.get("name"), str):
        errors.append("name must be a string")
    variables = env.get("variables", {})
    if not isinstance(variables, dict):
        errors.append("variables must be an object")
        return errors
    for key, var in variables.items():
        if not isinstance(var, dict) or not isinstance(var.get("value"), str):
            errors.append(f"variable {key}: value must be a string")
    return errors


ENVIRONMENTS_CODEC = model_list_codec(Environment, validate_environment)


@dataclass
class EnvironmentStore:
    environments: PersistentCell[list[Environment]]
    active_id: PersistentCell[str | None]
    current: ComputedCell[Environment | None]


def _find_environment(envs: list[Environment], env_id: str | None) -> Environment | None:
    if not env_id:
        return None
    for env in envs:
        if env.id == env_id:
            return env
    return None


def open_environments(
    registry: CellRegistry,
    root: Path | None = None,
    store: KeyValueStore | None = None,
) -> EnvironmentStore:
    """Register the environment cells and derive the current environment."""
    if store is None:
        store = LocalStorage(local_storage_path(root))
    environments = registry.create(
        "environments",
        [],
        FileBackend(store_path(ENVIRONMENTS_FILE, root)),
        serialize=ENVIRONMENTS_CODEC.serialize,
        deserialize=ENVIRONMENTS_CODEC.deserialize,
    )
    active_id = registry.create(
        "active-environment-id",
        None,
        KeyValueBackend(store, ACTIVE_ENVIRONMENT_KEY),
        is_equal=lambda a, b: a == b,
    )
    current = computed([active_id, environments], lambda env_id, envs: _find_environment(envs, env_id))
    return EnvironmentStore(environments, active_id, current)


async def initialize_default_environment(store: EnvironmentStore) -> Environment | None:
    """On first run, create and select a "Globals" environment."""
    await store.environments.ready
    await store.active_id.ready
    if store.environments.get():
        return None
    env = Environment(id=str(uuid.uuid4()), name=GLOBALS_NAME)
    await store.environments.set_and_flush([env])
    await store.active_id.set_and_flush(env.id)
    return env


# ── Actions ───────────────────────────────────────────────────


async def create_environment(store: EnvironmentStore, name: str) -> Environment:
    if not name.strip():
        raise ValidationError(["Environment name cannot be empty."])
    env = Environment(id=str(uuid.uuid4()), name=name)
    await store.environments.set_and_flush([*store.environments.get(), env])
    return env


async def update_environment(store: EnvironmentStore, env_id: str, **changes: Any) -> None:
    updated = [replace(env, **changes) if env.id == env_id else env for env in store.environments.get()]
    await store.environments.set_and_flush(updated)


async def delete_environment(store: EnvironmentStore, env_id: str) -> None:
    """Delete an environment, clearing the selection if it was active."""
    remaining = [env for env in store.environments.get() if env.id != env_id]
    await store.environments.set_and_flush(remaining)
    if store.active_id.get() == env_id:
        await store.active_id.set_and_flush(None)


async def select_environment(store: EnvironmentStore, env_id: str | None) -> None:
    if env_id is not None and _find_environment(store.environments.get(), env_id) is None:
        raise ValueError(f"Environment not found: {env_id}")
    await store.active_id.set_and_flush(env_id)


async def save_variable(store: EnvironmentStore, env_id: str, key: str, variable: Variable) -> None:
    """Create or replace a variable in an environment."""
    updated = []
    for env in store.environments.get():
        if env.id == env_id:
            env = replace(env, variables={**env.variables, key: variable})
        updated.append(env)
    await store.environments.set_and_flush(updated)


async def delete_variable(store: EnvironmentStore, env_id: str, key: str) -> None:
    updated = []
    for env in store.environments.get():
        if env.id == env_id:
            env = replace(env, variables={k: v for k, v in env.variables.items() if k != key})
        updated.append(env)
    await store.environments.set_and_flush(updated)


async def save_variable_to_active_environment(store: EnvironmentStore, key: str, value: str) -> bool:
    """Save a non-secret variable to the active environment, if any."""
    active_id = store.active_id.get()
    if not active_id:
        logger.warning("No active environment set, cannot save variable %s", key)
        return False
    await save_variable(store, active_id, key, Variable(value=value, is_secret=False))
    return True
