"""
The load-secrets workflow.

A single forward pass: inputs, auth check, CLI install, vault enumeration,
materialization, publish. Any failure ends the run; outputs are published
only after every step has succeeded.
"""

import json
import logging
import os
from typing import Dict, Any

import actions_core
import config as config_module
from auth import validate_auth
from config import ActionInputs, Strategy
from errors import LoadSecretsError, UnknownError
from installer import CliInstaller
from materializer import (
    ReferenceMaterializer,
    ValueMaterializer,
    WorkflowContext,
    unset_previous,
)
from vault_client import OpCliClient, enumerate_items

logger = logging.getLogger("load-secrets.workflow")


def build_materializer(inputs: ActionInputs, client: OpCliClient):
    if inputs.strategy == Strategy.REFERENCE:
        return ReferenceMaterializer(client, export_env=inputs.export_env)
    return ValueMaterializer(export_env=inputs.export_env)


def run_workflow(inputs: ActionInputs,
                 settings: Dict[str, Any],
                 environ: Dict[str, str] = None,
                 client: OpCliClient = None,
                 installer: CliInstaller = None) -> WorkflowContext:
    """
    Load every secret of the configured vault

    Args:
        inputs: Coerced action inputs
        settings: Configuration from config.load_config
        environ: Environment to read credentials and references from
        client: Vault client (default: OpCliClient)
        installer: CLI installer (default: CliInstaller from settings)

    Returns:
        The context holding the secret map, outputs and exported variables.
        Nothing is published to the runner here.
    """
    environ = os.environ if environ is None else environ
    context = WorkflowContext(environ)

    validate_auth(environ)

    installer = installer or CliInstaller(settings.get("cli", {}))
    install_result = installer.ensure_installed()
    logger.debug(f"CLI install result: {json.dumps(install_result.to_dict())}")

    client = client or OpCliClient(settings.get("cli", {}).get("binary", "op"))

    if inputs.unset_previous:
        unset_previous(context)

    items = enumerate_items(client, inputs.vault, log_items=settings.get("log_items", False))
    materializer = build_materializer(inputs, client)
    secrets = materializer.materialize(context, items)
    logger.info(f"Loaded {len(secrets)} secrets from vault {inputs.vault}")
    return context


def error_message(error: BaseException) -> str:
    """Message for the failure report, wrapping unknown failures"""
    if not isinstance(error, LoadSecretsError):
        error = UnknownError.wrap(error)
    return str(error)


def run(config_path: str = None, environ: Dict[str, str] = None) -> int:
    """
    Run the step and report the outcome to the runner

    Returns:
        Process exit code: 0 on success, 1 on failure
    """
    try:
        settings = config_module.load_config(config_path, environ)
        inputs = config_module.read_inputs(settings, environ)
        logger.debug(f"Inputs: {inputs!r}")
        context = run_workflow(inputs, settings, environ)
        context.publish()
    except Exception as e:
        message = error_message(e)
        logger.debug("Workflow failed", exc_info=True)
        return actions_core.set_failed(message)
    return 0
