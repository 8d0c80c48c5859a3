"""
Turns vault fields into step outputs and environment variables.

Nothing here writes to the runner directly: results are collected on a
WorkflowContext and published by the workflow once every remote call has
succeeded. Plaintext values are masked before they are stored anywhere.
"""

import json
import logging
import os
from typing import Dict, List, Iterable, Optional

import actions_core
from vault_client import OpCliClient, VaultItem, is_reference

logger = logging.getLogger("load-secrets.materializer")

MANAGED_VARIABLES = "OP_MANAGED_VARIABLES"
SECRETS_OUTPUT = "secrets"


class WorkflowContext:
    """State threaded through a single run of the workflow"""

    def __init__(self, environ: Dict[str, str] = None):
        self.base_env = dict(os.environ if environ is None else environ)
        self.env: Dict[str, str] = {}
        self.secret_ids: List[str] = []
        self.secrets: Dict[str, str] = {}
        self.outputs: Dict[str, str] = {}
        self.exported: Dict[str, str] = {}

    def getenv(self, name: str) -> Optional[str]:
        if name in self.env:
            return self.env[name]
        return self.base_env.get(name)

    def publish(self) -> None:
        """Hand collected outputs and variables to the runner"""
        for name, value in self.exported.items():
            actions_core.export_variable(name, value)
        for name, value in self.outputs.items():
            actions_core.set_output(name, value)


def unset_previous(context: WorkflowContext) -> List[str]:
    """Blank every variable exported by a previous run of this step"""
    managed = context.getenv(MANAGED_VARIABLES)
    if not managed:
        return []

    names = [name.strip() for name in managed.split(",") if name.strip()]
    logger.info("Unsetting previous values ...")
    for name in names:
        logger.info(f"Unsetting {name}")
        context.exported[name] = ""
        context.env[name] = ""
    context.exported[MANAGED_VARIABLES] = ""
    context.env[MANAGED_VARIABLES] = ""
    return names


def load_secrets(context: WorkflowContext, client: OpCliClient, export_env: bool) -> List[str]:
    """
    Resolve every op:// reference in the environment and publish the values

    References set by this run take precedence over ones inherited from the
    job environment. Values are masked before being exported or set as
    outputs.

    Returns:
        Names of the variables that were resolved
    """
    merged = dict(context.base_env)
    merged.update(context.env)
    references = {name: value for name, value in merged.items() if is_reference(value)}
    if not references:
        return []

    for name, reference in references.items():
        logger.info(f"Populating variable: {name}")
        value = client.read_reference(reference)
        actions_core.set_secret(value)
        context.env[name] = value
        if export_env:
            context.exported[name] = value
        else:
            context.outputs[name] = value

    names = list(references)
    if export_env:
        context.exported[MANAGED_VARIABLES] = ",".join(names)
    return names


class ReferenceMaterializer:
    """Exports op:// references and resolves them through the CLI"""

    def __init__(self, client: OpCliClient, export_env: bool = False):
        self.client = client
        self.export_env = export_env

    def materialize(self, context: WorkflowContext, items: Iterable[VaultItem]) -> Dict[str, str]:
        for item in items:
            for field in item.fields:
                if not field.id or not field.reference:
                    continue
                context.secret_ids.append(field.id)
                context.env[field.id] = field.reference

        load_secrets(context, self.client, self.export_env)

        context.secrets = {
            secret_id: context.env.get(secret_id) for secret_id in context.secret_ids
        }
        logger.info(json.dumps(context.secrets, indent=2))
        return context.secrets


class ValueMaterializer:
    """Collects plaintext field values into the ``secrets`` JSON output"""

    def __init__(self, export_env: bool = False):
        self.export_env = export_env

    def materialize(self, context: WorkflowContext, items: Iterable[VaultItem]) -> Dict[str, str]:
        for item in items:
            for field in item.fields:
                if not field.id or not field.value:
                    continue
                actions_core.set_secret(field.value)
                context.secret_ids.append(field.id)
                context.secrets[field.id] = field.value

        logger.info(json.dumps(context.secrets, indent=2))
        context.outputs[SECRETS_OUTPUT] = json.dumps(context.secrets)

        if self.export_env and context.secrets:
            for secret_id, value in context.secrets.items():
                context.env[secret_id] = value
                context.exported[secret_id] = value
            context.exported[MANAGED_VARIABLES] = ",".join(context.secrets)
        return context.secrets
