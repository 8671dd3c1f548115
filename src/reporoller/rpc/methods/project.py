"""Project scan, bundle and token RPC method handlers."""

import json
import logging
import time
from pathlib import Path
from typing import TYPE_CHECKING, Any

import aiofiles
import aiofiles.os

from reporoller.config.loader import load_project_config, load_reporoller_yml
from reporoller.config.models import ConfigError, ResolvedOptions
from reporoller.config.resolve import OptionOverrides, resolve_options
from reporoller.core.render import render
from reporoller.core.scan import ScanError, scan_files
from reporoller.core.tokens import (
    DEFAULT_PROVIDER,
    LLM_PROVIDERS,
    calculate_cost,
    estimate_tokens,
    get_all_cost_estimates,
)
from reporoller.daemon.cache import CacheEntry
from reporoller.rpc.params import (
    BundleGenerateParams,
    ProjectScanParams,
    TokensEstimateParams,
)
from reporoller.rpc.protocol import DomainError, ErrorCode

if TYPE_CHECKING:
    from reporoller.daemon.session import DaemonSession
    from reporoller.rpc.server import RPCServer

logger = logging.getLogger(__name__)

ESTIMATE_PROVIDERS = ("claude-sonnet", "gpt-4o", "gemini")

# Fields of the params models that are not option overrides
_NON_OPTION_FIELDS = {"root", "force", "return_content"}


def _overrides(params: OptionOverrides) -> OptionOverrides:
    return OptionOverrides.model_validate(
        params.model_dump(exclude=_NON_OPTION_FIELDS, exclude_none=True)
    )


async def resolve_project_options(
    root: Path, overrides: OptionOverrides
) -> ResolvedOptions:
    """Load a project's config files and resolve the effective options.

    Raises:
        DomainError: INVALID_ROOT if root is not a directory, CONFIG_ERROR if
            a config file is malformed.
    """
    if not await aiofiles.os.path.isdir(root):
        raise DomainError(
            ErrorCode.INVALID_ROOT,
            f"Not a directory: {root}",
            {"root": str(root)},
        )

    try:
        config = await load_project_config(root)
        yml = await load_reporoller_yml(root)
    except ConfigError as e:
        raise DomainError(ErrorCode.CONFIG_ERROR, str(e), {"root": str(root)}) from e

    return resolve_options(root, overrides, config, yml)


async def scan_and_store(
    session: "DaemonSession", root: Path, options: ResolvedOptions
) -> CacheEntry:
    """Run the scan engine for ``root`` and replace its cache entry."""
    try:
        scan = await scan_files(
            root,
            include=options.include,
            exclude=options.exclude,
            extensions=options.extensions,
            max_file_size_bytes=options.max_file_size_bytes,
            sort=options.sort,
            layout=options.layout,
        )
    except ScanError as e:
        raise DomainError(ErrorCode.INVALID_ROOT, str(e), {"root": e.root}) from e

    entry = session.cache.entry_for(scan, options)
    session.cache.put(root, entry)
    logger.info(
        "project_scanned",
        extra={
            "project.root": str(root),
            "scan.files": scan.file_count,
            "scan.bytes": scan.total_bytes,
        },
    )
    return entry


def register_project_methods(server: "RPCServer", session: "DaemonSession") -> None:
    """Register project.scan, bundle.generate and tokens.estimate.

    Args:
        server: RPC server to register methods on.
        session: Session holding the project cache.
    """

    async def project_scan(params: ProjectScanParams) -> dict[str, Any]:
        session.count_request()
        root = params.project_root()

        if not params.force:
            cached = session.cache.get(root)
            if cached is not None:
                return {"cached": True, **cached.scan.summary()}

        async def run_scan() -> CacheEntry:
            options = await resolve_project_options(root, _overrides(params))
            return await scan_and_store(session, root, options)

        if params.force:
            entry = await run_scan()
        else:
            entry = await session.coalescer.run(root, run_scan)

        return {
            "cached": False,
            **entry.scan.summary(),
            "fileList": entry.scan.relative_paths(),
        }

    async def bundle_generate(params: BundleGenerateParams) -> dict[str, Any]:
        session.count_request()
        started = time.monotonic()
        root = params.project_root()

        options = await resolve_project_options(root, _overrides(params))

        entry = session.cache.get(root)
        cached = entry is not None
        if entry is None:
            entry = await session.coalescer.run(
                root, lambda: scan_and_store(session, root, options)
            )
        scan = entry.scan

        output = await render(scan, options)
        tokens = estimate_tokens(output)

        provider = options.model if options.model in LLM_PROVIDERS else DEFAULT_PROVIDER
        cost = calculate_cost(tokens, provider)
        estimated_cost = cost.input_cost if cost else None

        output_file = options.out_file
        if params.out_file:
            out_path = Path(params.out_file).expanduser()
            if not out_path.is_absolute():
                out_path = root / out_path
            async with aiofiles.open(out_path, "w", encoding="utf-8") as f:
                await f.write(output)
            output_file = str(out_path)

        duration_ms = int((time.monotonic() - started) * 1000)
        history_entry = await session.history.record(
            options,
            scan.files,
            estimated_tokens=tokens,
            estimated_cost=estimated_cost,
            duration_ms=duration_ms,
            args=[
                "daemon",
                "bundle.generate",
                json.dumps(params.model_dump(by_alias=True, exclude_none=True)),
            ],
        )

        result: dict[str, Any] = {
            "outputFile": output_file,
            "fileCount": scan.file_count,
            "totalBytes": scan.total_bytes,
            "estimatedTokens": tokens,
            "estimatedCost": estimated_cost,
            "duration": duration_ms,
            "historyId": history_entry.id,
            "format": options.format,
            "cached": cached,
        }
        if params.return_content:
            result["content"] = output
        return result

    async def tokens_estimate(params: TokensEstimateParams) -> dict[str, Any]:
        session.count_request()
        root = params.project_root()

        entry = session.cache.get(root)
        if entry is None:
            stale = session.cache.peek(root)
            data: dict[str, Any] = {"root": str(root), "hint": "run project.scan first"}
            if stale is not None:
                data["staleAge"] = int(session.cache.age(stale) * 1000)
            raise DomainError(
                ErrorCode.NO_CACHED_SCAN,
                "No cached scan. Call project.scan first.",
                data,
            )

        output = await render(entry.scan, entry.options)
        tokens = estimate_tokens(output)

        if params.all_providers:
            costs = get_all_cost_estimates(tokens)
        else:
            costs = [
                estimate
                for name in ESTIMATE_PROVIDERS
                if (estimate := calculate_cost(tokens, name)) is not None
            ]
        estimates = [
            {
                "provider": estimate.provider,
                "tokens": tokens,
                "cost": estimate.input_cost,
                "withinContext": estimate.within_context_window,
            }
            for estimate in costs
        ]

        return {"tokens": tokens, "estimates": estimates}

    server.register("project.scan", project_scan, ProjectScanParams)
    server.register("bundle.generate", bundle_generate, BundleGenerateParams)
    server.register("tokens.estimate", tokens_estimate, TokensEstimateParams)
    logger.debug("Registered project RPC methods")
