"""Machine-readable descriptions of the CLI and of the bundle tool."""

from importlib.metadata import PackageNotFoundError, version
from typing import Any, get_args

import click
import typer.main

from reporoller.config.models import OutputFormat, SortMode
from reporoller.config.presets import list_built_in_presets
from reporoller.core.tokens import LLM_PROVIDERS
from reporoller.rpc.params import BundleGenerateParams

SCHEMA_DRAFT = "https://json-schema.org/draft/2020-12/schema"
TOOL_NAME = "repo_roller_bundle"
TOOL_DESCRIPTION = (
    "Bundle repository source code into a single context-optimized output for "
    "LLM consumption. Discovers files, estimates token usage, and formats "
    "output appropriately."
)


def _package_version() -> str:
    try:
        return version("repo-roller")
    except PackageNotFoundError:
        return "0.0.0"


def _json_default(value: Any) -> Any:
    # Click may use sentinels or callables for defaults
    if isinstance(value, str | int | float | bool):
        return value
    if isinstance(value, list | tuple) and all(
        isinstance(v, str | int | float | bool) for v in value
    ):
        return list(value)
    return None


def _describe_param(param: click.Parameter) -> dict[str, Any]:
    info: dict[str, Any] = {
        "name": param.name,
        "type": param.type.name,
        "required": param.required,
    }
    if isinstance(param, click.Option):
        info["flags"] = ", ".join([*param.opts, *param.secondary_opts])
        info["description"] = param.help or ""
    default = _json_default(param.default)
    if default is not None:
        info["default"] = default
    if isinstance(param.type, click.Choice):
        info["choices"] = list(param.type.choices)
    return info


def _walk(command: click.Command, path: tuple[str, ...]) -> list[dict[str, Any]]:
    if isinstance(command, click.Group):
        commands: list[dict[str, Any]] = []
        for name in sorted(command.commands):
            commands.extend(_walk(command.commands[name], (*path, name)))
        return commands

    return [
        {
            "name": " ".join(path),
            "description": (command.help or "").strip().split("\n")[0],
            "arguments": [
                _describe_param(p)
                for p in command.params
                if isinstance(p, click.Argument)
            ],
            "options": [
                _describe_param(p) for p in command.params if isinstance(p, click.Option)
            ],
        }
    ]


def generate_cli_schema() -> dict[str, Any]:
    """Describe every CLI command with its arguments and options."""
    from reporoller.cli.app import app

    root = typer.main.get_command(app)
    return {
        "$schema": SCHEMA_DRAFT,
        "name": "repo-roller",
        "version": _package_version(),
        "description": "Aggregate source code into LLM-friendly bundles",
        "commands": _walk(root, ()),
        "presets": list_built_in_presets(),
        "models": [
            {
                "name": p.name,
                "displayName": p.display_name,
                "contextLimit": p.context_window,
            }
            for p in LLM_PROVIDERS.values()
        ],
        "outputFormats": list(get_args(OutputFormat)),
        "sortModes": list(get_args(SortMode)),
    }


def generate_llm_tool_definition() -> dict[str, Any]:
    """Tool definition whose input schema mirrors bundle.generate params."""
    schema = BundleGenerateParams.model_json_schema(by_alias=True)
    properties = schema.get("properties", {})
    if "preset" in properties:
        properties["preset"]["examples"] = list_built_in_presets()
    if "model" in properties:
        properties["model"]["examples"] = list(LLM_PROVIDERS)

    return {
        "name": TOOL_NAME,
        "description": TOOL_DESCRIPTION,
        "input_schema": {
            "type": "object",
            "properties": properties,
            "required": schema.get("required", []),
        },
    }
