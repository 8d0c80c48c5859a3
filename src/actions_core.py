"""
GitHub Actions runner interface.

Reads action inputs and talks to the runner through workflow commands
written to stdout and the file commands ($GITHUB_OUTPUT, $GITHUB_ENV,
$GITHUB_PATH). Outside a runner the file variables are unset and only the
in-process state is updated.
"""

import logging
import os
import sys
import uuid
from typing import Dict, Optional

from errors import InputError
import masking

logger = logging.getLogger("load-secrets.actions")

TRUE_VALUES = ("true", "True", "TRUE")
FALSE_VALUES = ("false", "False", "FALSE")


def _input_env_name(name: str) -> str:
    return "INPUT_" + name.replace(" ", "_").upper()


def get_input(name: str, required: bool = False, environ: Dict[str, str] = None) -> str:
    """Get an action input by name, stripped of surrounding whitespace"""
    environ = os.environ if environ is None else environ
    value = environ.get(_input_env_name(name), "").strip()
    if required and not value:
        raise InputError(f"Input required and not supplied: {name}")
    return value


def get_boolean_input(name: str, environ: Dict[str, str] = None) -> bool:
    """
    Get a boolean action input.

    Accepts the YAML 1.2 core schema spellings. An absent or empty input
    is False.
    """
    value = get_input(name, environ=environ)
    if not value or value in FALSE_VALUES:
        return False
    if value in TRUE_VALUES:
        return True
    raise InputError(
        f"Input does not meet YAML 1.2 \"Core Schema\" specification: {name}\n"
        f"Support boolean input list: `true | True | TRUE | false | False | FALSE`"
    )


def _escape_data(value: str) -> str:
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def issue_command(command: str, message: str = "") -> None:
    sys.stdout.write(f"::{command}::{_escape_data(message)}\n")
    sys.stdout.flush()


def _file_command(env_name: str, key: str, value: str) -> bool:
    """Append a heredoc-style entry to a runner file command, if available"""
    path = os.environ.get(env_name)
    if not path:
        return False
    delimiter = f"ghadelimiter_{uuid.uuid4()}"
    if delimiter in key or delimiter in value:
        raise ValueError(f"Unexpected delimiter collision writing {key}")
    with open(path, 'a', encoding='utf-8') as f:
        f.write(f"{key}<<{delimiter}\n{value}\n{delimiter}\n")
    return True


def set_secret(value: str) -> None:
    """Mask a value in the runner log and in this process's log records"""
    if not value:
        return
    masking.register(value)
    issue_command("add-mask", value)
    # The runner masks whole lines only, so announce each line of a
    # multi-line value as well
    lines = value.splitlines()
    if len(lines) > 1:
        for line in lines:
            if line.strip():
                issue_command("add-mask", line)


def set_output(name: str, value: str) -> None:
    if not _file_command("GITHUB_OUTPUT", name, value):
        logger.debug(f"GITHUB_OUTPUT not set, output {name} kept in-process only")


def export_variable(name: str, value: str) -> None:
    os.environ[name] = value
    if not _file_command("GITHUB_ENV", name, value):
        logger.debug(f"GITHUB_ENV not set, variable {name} exported in-process only")


def add_path(directory: str) -> None:
    """Prepend a directory to PATH for this process and later steps"""
    path_file = os.environ.get("GITHUB_PATH")
    if path_file:
        with open(path_file, 'a', encoding='utf-8') as f:
            f.write(f"{directory}\n")
    os.environ["PATH"] = f"{directory}{os.pathsep}{os.environ.get('PATH', '')}"


def is_debug(environ: Dict[str, str] = None) -> bool:
    environ = os.environ if environ is None else environ
    return environ.get("RUNNER_DEBUG") == "1"


def warning(message: str) -> None:
    issue_command("warning", message)


def error(message: str) -> None:
    issue_command("error", masking.masking_filter.redact(message))


def set_failed(message: Optional[str]) -> int:
    """Report the step as failed and return the process exit code"""
    error(message or "")
    return 1
