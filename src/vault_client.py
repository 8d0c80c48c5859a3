"""
Vault access through the 1Password CLI.

OpCliClient wraps the ``op`` commands this step needs; the item and field
models mirror the JSON the CLI prints with ``--format json``.
"""

import json
import logging
import os
import subprocess
from typing import Dict, List, Optional, Any, Iterator

from errors import RemoteCallError

logger = logging.getLogger("load-secrets.vault")

INTEGRATION_NAME = "1Password Load Secrets Python"
INTEGRATION_ID = "GHA"
INTEGRATION_BUILDNUMBER = "1000101"

REFERENCE_PREFIX = "op://"


def is_reference(value: Optional[str]) -> bool:
    return bool(value) and value.startswith(REFERENCE_PREFIX)


class Field:
    """A single field of a vault item"""

    def __init__(self, id: str, label: str = None, value: str = None,
                 reference: str = None, type: str = None, purpose: str = None):
        self.id = id
        self.label = label
        self.value = value
        self.reference = reference
        self.type = type
        self.purpose = purpose

    def to_dict(self, include_value: bool = False) -> Dict[str, Any]:
        """Convert to dictionary, optionally including the secret value"""
        result = {"id": self.id}
        for key in ("label", "type", "purpose", "reference"):
            if getattr(self, key):
                result[key] = getattr(self, key)
        if include_value and self.value:
            result["value"] = self.value
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Field':
        return cls(
            id=data.get("id"),
            label=data.get("label"),
            value=data.get("value"),
            reference=data.get("reference"),
            type=data.get("type"),
            purpose=data.get("purpose"),
        )


class VaultItem:
    """A titled vault item and its fields"""

    def __init__(self, title: str, id: str = None, fields: List[Field] = None):
        self.title = title
        self.id = id
        self.fields = fields or []

    def to_dict(self, include_values: bool = False) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "fields": [f.to_dict(include_value=include_values) for f in self.fields],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'VaultItem':
        return cls(
            title=data.get("title"),
            id=data.get("id"),
            fields=[Field.from_dict(f) for f in data.get("fields") or []],
        )


class OpCliClient:
    """Runs 1Password CLI commands and parses their output"""

    def __init__(self, binary: str = "op", environ: Dict[str, str] = None):
        self.binary = binary
        self.environ = environ

    def _env(self) -> Dict[str, str]:
        env = dict(os.environ if self.environ is None else self.environ)
        env["OP_INTEGRATION_NAME"] = INTEGRATION_NAME
        env["OP_INTEGRATION_ID"] = INTEGRATION_ID
        env["OP_INTEGRATION_BUILDNUMBER"] = INTEGRATION_BUILDNUMBER
        return env

    def _run(self, args: List[str]) -> str:
        command = [self.binary] + args
        try:
            result = subprocess.run(
                command,
                capture_output=True,
                text=True,
                check=True,
                env=self._env()
            )
        except FileNotFoundError as e:
            raise RemoteCallError(f"1Password CLI not found: {self.binary}", command) from e
        except subprocess.CalledProcessError as e:
            stderr = (e.stderr or "").strip()
            raise RemoteCallError(
                f"'{' '.join(command[:3])}' failed: {stderr or f'exit code {e.returncode}'}",
                command, stderr
            ) from e
        return result.stdout

    def _run_json(self, args: List[str]) -> Any:
        output = self._run(args + ['--format', 'json'])
        try:
            return json.loads(output)
        except json.JSONDecodeError as e:
            raise RemoteCallError(f"Invalid JSON from 1Password CLI: {str(e)}", [self.binary] + args) from e

    def list_items(self, vault: str) -> List[Dict[str, Any]]:
        """List the items in a vault (titles only are relied upon)"""
        items = self._run_json(['item', 'list', '--vault', vault])
        return items or []

    def get_item(self, title: str, vault: str) -> VaultItem:
        """Fetch the full record of an item by title"""
        data = self._run_json(['item', 'get', title, '--vault', vault])
        return VaultItem.from_dict(data)

    def read_reference(self, reference: str) -> str:
        """Resolve an op:// secret reference to its value"""
        return self._run(['read', '--no-newline', reference])


def enumerate_items(client: OpCliClient, vault: str, log_items: bool = False) -> Iterator[VaultItem]:
    """
    Yield every item of a vault with its fields.

    One list call, then one get per title, in order. When log_items is set
    each item is logged at DEBUG without its field values.
    """
    for summary in client.list_items(vault):
        title = summary.get("title")
        if not title:
            continue
        item = client.get_item(title, vault)
        if log_items:
            logger.debug(json.dumps(item.to_dict(include_values=False), indent=2))
        yield item
