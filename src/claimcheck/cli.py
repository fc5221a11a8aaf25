# src/claimcheck/cli.py
"""claimcheck Command Line Interface.

Entry point for the claimcheck CLI tool. This module is the only place that
decides exit status: components raise typed errors (including backend
configuration errors raised while building clients), commands print an
operation-specific message and exit 1.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any

import typer
from pydantic import TypeAdapter, ValidationError

from claimcheck import __version__
from claimcheck.contracts import ClaimCheckError
from claimcheck.core.config import (
    ClaimCheckSettings,
    ConsumerSettings,
    ObjectStoreSettings,
    ProducerSettings,
    load_raw_settings,
    merge_overrides,
)

__all__ = ["app"]

app = typer.Typer(
    name="claimcheck",
    help="claimcheck: publish large payloads as claim checks over a stream.",
    no_args_is_help=True,
)


class StoreBackend(str, Enum):
    oci = "oci"
    azure = "azure"
    filesystem = "filesystem"


class StreamBackend(str, Enum):
    oci = "oci"
    sqlite = "sqlite"


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"claimcheck version {__version__}")
        raise typer.Exit()


def _load_dotenv(env_file: Path | None = None) -> bool:
    """Load environment variables from .env file.

    Args:
        env_file: Explicit path to .env file. If None, searches for .env
                 in current directory and parent directories.

    Raises:
        typer.Exit: If explicit env_file path doesn't exist.
    """
    from dotenv import load_dotenv

    if env_file is not None:
        if not env_file.exists():
            typer.secho(
                f"Error: .env file not found: {env_file}",
                fg=typer.colors.RED,
                err=True,
            )
            raise typer.Exit(1)
        return load_dotenv(env_file, override=False)

    return load_dotenv(override=False)  # Don't override existing env vars


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    no_dotenv: bool = typer.Option(
        False,
        "--no-dotenv",
        help="Skip loading .env file.",
    ),
    env_file: Path | None = typer.Option(
        None,
        "--env-file",
        help="Path to .env file (skips automatic search).",
        exists=False,  # We handle existence check ourselves for better error message
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose/debug logging.",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Output structured JSON logs (for machine processing).",
    ),
) -> None:
    """claimcheck: publish large payloads as claim checks over a stream."""
    from claimcheck.core.logging import configure_logging

    configure_logging(json_output=json_logs, level="DEBUG" if verbose else "INFO")

    if not no_dotenv:
        _load_dotenv(env_file=env_file)
    elif env_file is not None:
        typer.secho(
            "Warning: --env-file ignored because --no-dotenv is set.",
            fg=typer.colors.YELLOW,
            err=True,
        )


def _format_validation_error(
    title: str,
    message: str,
    hint: str | None = None,
    details: list[str] | None = None,
) -> None:
    """Display a formatted validation error with optional hint and details."""
    from rich.console import Console
    from rich.panel import Panel
    from rich.text import Text

    console = Console(stderr=True)

    content = Text()
    content.append(message, style="white")

    if details:
        content.append("\n\n")
        for detail in details:
            content.append(f"  • {detail}\n", style="dim")

    if hint:
        content.append("\n")
        content.append("Hint: ", style="yellow bold")
        content.append(hint, style="yellow")

    console.print(Panel(content, title=f"[red bold]{title}[/]", border_style="red", padding=(0, 1)))


def _read_settings_file(settings: Path | None) -> dict[str, Any]:
    """Load the raw settings dict, or {} when no file was given.

    Raises:
        typer.Exit: If the file is missing or cannot be parsed
    """
    if settings is None:
        return {}
    settings_path = settings.expanduser()
    try:
        return load_raw_settings(settings_path)
    except FileNotFoundError:
        _format_validation_error(
            title="File Not Found",
            message=f"Settings file does not exist: {settings}",
            hint="Check the path and ensure the file exists.",
        )
        raise typer.Exit(1) from None
    except Exception as e:
        # Dynaconf surfaces YAML syntax errors from its vendored parser
        _format_validation_error(
            title="Settings File Error",
            message=f"Failed to read {settings_path.name}: {e}",
            hint="Check for unclosed brackets, incorrect indentation, or invalid characters.",
        )
        raise typer.Exit(1) from None


def _report_validation_error(e: ValidationError) -> None:
    details = []
    for error in e.errors():
        loc = ".".join(str(x) for x in error["loc"])
        details.append(f"{loc}: {error['msg']}" if loc else str(error["msg"]))
    _format_validation_error(
        title="Configuration Validation Failed",
        message="Invalid claimcheck settings",
        details=details,
        hint="Pass the missing values as options or in a --settings file.",
    )


def _effective_backend(raw: dict[str, Any], section: str, override: Enum | None) -> str:
    if override is not None:
        return str(override.value)
    configured = raw.get(section, {})
    if isinstance(configured, dict) and configured.get("backend"):
        return str(configured["backend"])
    return "oci"


def _backend_overrides(
    raw: dict[str, Any],
    *,
    store_backend: StoreBackend | None,
    stream_backend: StreamBackend | None,
    oci_config_file: str | None,
    oci_profile: str | None,
    timeout: float | None,
    store_path: Path | None,
    store_namespace: str | None,
    azure_connection_string: str | None,
    azure_account_url: str | None,
    azure_managed_identity: bool,
    stream_url: str | None,
) -> dict[str, Any]:
    """Translate backend options into a settings override dict.

    Options are only applied to the section whose backend accepts them, so
    e.g. --oci-profile never leaks into a filesystem store section.
    """
    store_kind = _effective_backend(raw, "object_store", store_backend)
    store: dict[str, Any] = {"backend": store_kind}
    match store_kind:
        case "oci":
            store.update(config_file=oci_config_file, profile=oci_profile, timeout_seconds=timeout)
        case "azure":
            store["timeout_seconds"] = timeout
            store["auth"] = {
                "connection_string": azure_connection_string,
                "account_url": azure_account_url,
                "use_managed_identity": True if azure_managed_identity else None,
            }
        case "filesystem":
            store.update(base_path=store_path, namespace=store_namespace)

    stream_kind = _effective_backend(raw, "stream", stream_backend)
    stream: dict[str, Any] = {"backend": stream_kind}
    match stream_kind:
        case "oci":
            stream.update(config_file=oci_config_file, profile=oci_profile, timeout_seconds=timeout)
        case "sqlite":
            stream["url"] = stream_url

    return {"object_store": store, "stream": stream}


def _validate_settings(raw: dict[str, Any]) -> ClaimCheckSettings:
    try:
        return ClaimCheckSettings(**raw)
    except ValidationError as e:
        _report_validation_error(e)
        raise typer.Exit(1) from None


def _fail(message: str) -> typer.Exit:
    typer.secho(f"Error: {message}", fg=typer.colors.RED, err=True)
    return typer.Exit(1)


# === Shared option definitions ===

_SETTINGS_OPTION = typer.Option(None, "--settings", "-s", help="Path to settings YAML file.")
_COMPARTMENT_OPTION = typer.Option(None, "--compartment-id", help="Compartment the object storage namespace is resolved for.")
_STREAM_ID_OPTION = typer.Option(None, "--stream-id", help="Stream the claim checks are published to / read from.")
_STREAM_ENDPOINT_OPTION = typer.Option(None, "--stream-endpoint", help="Stream service messages endpoint.")
_STORE_BACKEND_OPTION = typer.Option(None, "--store-backend", help="Object store backend (default: oci).")
_STREAM_BACKEND_OPTION = typer.Option(None, "--stream-backend", help="Stream backend (default: oci).")
_OCI_CONFIG_OPTION = typer.Option(None, "--oci-config-file", help="OCI config file (default: ~/.oci/config).")
_OCI_PROFILE_OPTION = typer.Option(None, "--oci-profile", help="OCI config profile (default: DEFAULT).")
_TIMEOUT_OPTION = typer.Option(None, "--timeout", min=0.001, help="Per-call network timeout in seconds.")
_STORE_PATH_OPTION = typer.Option(None, "--store-path", help="Base directory for the filesystem store.")
_STORE_NAMESPACE_OPTION = typer.Option(None, "--store-namespace", help="Namespace reported by the filesystem store.")
_AZURE_CONN_OPTION = typer.Option(
    None,
    "--azure-connection-string",
    envvar="AZURE_STORAGE_CONNECTION_STRING",
    help="Azure Storage connection string.",
    show_envvar=True,
)
_AZURE_URL_OPTION = typer.Option(None, "--azure-account-url", help="Azure Storage account URL.")
_AZURE_MI_OPTION = typer.Option(False, "--azure-managed-identity", help="Authenticate to Azure with Managed Identity.")
_STREAM_URL_OPTION = typer.Option(None, "--stream-url", help="SQLAlchemy URL for the sqlite stream backend.")


@app.command()
def produce(
    file_path: Path | None = typer.Argument(None, help="File to publish (its name becomes the object key)."),
    bucket: str | None = typer.Option(None, "--bucket", "-b", help="Bucket/container the payload is stored in."),
    settings: Path | None = _SETTINGS_OPTION,
    compartment_id: str | None = _COMPARTMENT_OPTION,
    stream_id: str | None = _STREAM_ID_OPTION,
    stream_endpoint: str | None = _STREAM_ENDPOINT_OPTION,
    store_backend: StoreBackend | None = _STORE_BACKEND_OPTION,
    stream_backend: StreamBackend | None = _STREAM_BACKEND_OPTION,
    oci_config_file: str | None = _OCI_CONFIG_OPTION,
    oci_profile: str | None = _OCI_PROFILE_OPTION,
    timeout: float | None = _TIMEOUT_OPTION,
    store_path: Path | None = _STORE_PATH_OPTION,
    store_namespace: str | None = _STORE_NAMESPACE_OPTION,
    azure_connection_string: str | None = _AZURE_CONN_OPTION,
    azure_account_url: str | None = _AZURE_URL_OPTION,
    azure_managed_identity: bool = _AZURE_MI_OPTION,
    stream_url: str | None = _STREAM_URL_OPTION,
) -> None:
    """Store a file in the object store and publish its claim check."""
    from claimcheck.cli_helpers import build_object_store, build_stream
    from claimcheck.core.namespace import resolve_namespace
    from claimcheck.core.pointer import encode_pointer
    from claimcheck.engine.producer import Producer
    from claimcheck.plugins.azure.auth import AzureConfigError
    from claimcheck.plugins.local.sqlite_stream import StreamDatabaseError
    from claimcheck.plugins.oci.auth import OciConfigError

    raw = _read_settings_file(settings)
    overrides = {
        "connection": {"compartment_id": compartment_id, "stream_id": stream_id, "stream_endpoint": stream_endpoint},
        "run": {"mode": "producer", "bucket": bucket, "file_path": file_path},
        **_backend_overrides(
            raw,
            store_backend=store_backend,
            stream_backend=stream_backend,
            oci_config_file=oci_config_file,
            oci_profile=oci_profile,
            timeout=timeout,
            store_path=store_path,
            store_namespace=store_namespace,
            azure_connection_string=azure_connection_string,
            azure_account_url=azure_account_url,
            azure_managed_identity=azure_managed_identity,
            stream_url=stream_url,
        ),
    }
    config = _validate_settings(merge_overrides(raw, overrides))
    run = config.run
    # run.mode was forced to "producer" above
    if not isinstance(run, ProducerSettings):
        raise AssertionError(f"Expected producer settings, got {type(run).__name__}")

    try:
        store = build_object_store(config.object_store)
        stream = build_stream(config.stream, config.connection)
        namespace = resolve_namespace(store, config.connection.compartment_id)
        producer = Producer(store, stream, namespace=namespace, stream_id=config.connection.stream_id)
        claim = producer.publish(run.file_path.expanduser(), run.bucket)
    except (OciConfigError, AzureConfigError, StreamDatabaseError) as e:
        raise _fail(str(e)) from None
    except ClaimCheckError as e:
        raise _fail(str(e)) from None

    typer.echo(encode_pointer(claim))


@app.command()
def consume(
    destination: Path | None = typer.Option(None, "--destination", "-d", help="Where redeemed payloads are written."),
    directory: bool = typer.Option(
        False,
        "--directory",
        help="Treat --destination as a directory and write one file per object key.",
    ),
    group: str | None = typer.Option(None, "--group", "-g", help="Consumer group (default: all)."),
    interval: float | None = typer.Option(None, "--interval", "-i", min=0.001, help="Seconds between polls (default: 2)."),
    instance_name: str | None = typer.Option(None, "--instance-name", help="Consumer identity in the group (default: host-pid)."),
    batch_limit: int | None = typer.Option(None, "--batch-limit", min=1, help="Max messages per fetch (default: 10)."),
    max_polls: int | None = typer.Option(None, "--max-polls", min=1, help="Stop after this many polls."),
    skip_malformed: bool = typer.Option(
        False,
        "--skip-malformed",
        help="Log and skip messages that are not claim checks instead of stopping.",
    ),
    settings: Path | None = _SETTINGS_OPTION,
    compartment_id: str | None = _COMPARTMENT_OPTION,
    stream_id: str | None = _STREAM_ID_OPTION,
    stream_endpoint: str | None = _STREAM_ENDPOINT_OPTION,
    store_backend: StoreBackend | None = _STORE_BACKEND_OPTION,
    stream_backend: StreamBackend | None = _STREAM_BACKEND_OPTION,
    oci_config_file: str | None = _OCI_CONFIG_OPTION,
    oci_profile: str | None = _OCI_PROFILE_OPTION,
    timeout: float | None = _TIMEOUT_OPTION,
    store_path: Path | None = _STORE_PATH_OPTION,
    store_namespace: str | None = _STORE_NAMESPACE_OPTION,
    azure_connection_string: str | None = _AZURE_CONN_OPTION,
    azure_account_url: str | None = _AZURE_URL_OPTION,
    azure_managed_identity: bool = _AZURE_MI_OPTION,
    stream_url: str | None = _STREAM_URL_OPTION,
) -> None:
    """Redeem claim checks from the stream until interrupted (Ctrl-C / SIGTERM)."""
    from claimcheck.cli_helpers import build_object_store, build_stream
    from claimcheck.core.namespace import resolve_namespace
    from claimcheck.engine.consumer import Consumer
    from claimcheck.engine.shutdown import install_shutdown_handler
    from claimcheck.engine.sinks import create_sink
    from claimcheck.plugins.azure.auth import AzureConfigError
    from claimcheck.plugins.local.sqlite_stream import StreamDatabaseError
    from claimcheck.plugins.oci.auth import OciConfigError

    raw = _read_settings_file(settings)
    overrides = {
        "connection": {"compartment_id": compartment_id, "stream_id": stream_id, "stream_endpoint": stream_endpoint},
        "run": {
            "mode": "consumer",
            "destination": destination,
            "destination_kind": "directory" if directory else None,
            "group": group,
            "interval_seconds": interval,
            "instance_name": instance_name,
            "batch_limit": batch_limit,
            "max_polls": max_polls,
            "on_malformed": "skip" if skip_malformed else None,
        },
        **_backend_overrides(
            raw,
            store_backend=store_backend,
            stream_backend=stream_backend,
            oci_config_file=oci_config_file,
            oci_profile=oci_profile,
            timeout=timeout,
            store_path=store_path,
            store_namespace=store_namespace,
            azure_connection_string=azure_connection_string,
            azure_account_url=azure_account_url,
            azure_managed_identity=azure_managed_identity,
            stream_url=stream_url,
        ),
    }
    config = _validate_settings(merge_overrides(raw, overrides))
    run = config.run
    # run.mode was forced to "consumer" above
    if not isinstance(run, ConsumerSettings):
        raise AssertionError(f"Expected consumer settings, got {type(run).__name__}")

    try:
        store = build_object_store(config.object_store)
        stream = build_stream(config.stream, config.connection)
        # Once per process, before any stream work
        resolve_namespace(store, config.connection.compartment_id)
        consumer = Consumer(
            stream,
            store,
            create_sink(run.destination.expanduser(), run.destination_kind),
            stream_id=config.connection.stream_id,
            config=run.to_poll_config(),
        )
        with install_shutdown_handler() as shutdown_event:
            result = consumer.run(shutdown_event, max_polls=run.max_polls)
    except (OciConfigError, AzureConfigError, StreamDatabaseError) as e:
        raise _fail(str(e)) from None
    except ClaimCheckError as e:
        raise _fail(str(e)) from None

    typer.echo(
        f"Consumer stopped ({result.stop_reason}): {result.redeemed} redeemed, {result.skipped} skipped in {result.polls} polls"
    )


@app.command("resolve-namespace")
def resolve_namespace_command(
    settings: Path | None = _SETTINGS_OPTION,
    compartment_id: str | None = _COMPARTMENT_OPTION,
    store_backend: StoreBackend | None = _STORE_BACKEND_OPTION,
    oci_config_file: str | None = _OCI_CONFIG_OPTION,
    oci_profile: str | None = _OCI_PROFILE_OPTION,
    timeout: float | None = _TIMEOUT_OPTION,
    store_path: Path | None = _STORE_PATH_OPTION,
    store_namespace: str | None = _STORE_NAMESPACE_OPTION,
    azure_connection_string: str | None = _AZURE_CONN_OPTION,
    azure_account_url: str | None = _AZURE_URL_OPTION,
    azure_managed_identity: bool = _AZURE_MI_OPTION,
) -> None:
    """Print the object storage namespace for a compartment."""
    from claimcheck.cli_helpers import build_object_store
    from claimcheck.core.namespace import resolve_namespace
    from claimcheck.plugins.azure.auth import AzureConfigError
    from claimcheck.plugins.oci.auth import OciConfigError

    raw = _read_settings_file(settings)
    backend = _backend_overrides(
        raw,
        store_backend=store_backend,
        stream_backend=None,
        oci_config_file=oci_config_file,
        oci_profile=oci_profile,
        timeout=timeout,
        store_path=store_path,
        store_namespace=store_namespace,
        azure_connection_string=azure_connection_string,
        azure_account_url=azure_account_url,
        azure_managed_identity=azure_managed_identity,
        stream_url=None,
    )
    merged = merge_overrides(raw, {"connection": {"compartment_id": compartment_id}, "object_store": backend["object_store"]})

    connection = merged.get("connection", {})
    resolved_compartment = connection.get("compartment_id") if isinstance(connection, dict) else None
    if not resolved_compartment:
        raise _fail("--compartment-id is required")

    try:
        store_settings = TypeAdapter(ObjectStoreSettings).validate_python(merged.get("object_store", {"backend": "oci"}))
    except ValidationError as e:
        _report_validation_error(e)
        raise typer.Exit(1) from None

    try:
        namespace = resolve_namespace(build_object_store(store_settings), resolved_compartment)
    except (OciConfigError, AzureConfigError) as e:
        raise _fail(str(e)) from None
    except ClaimCheckError as e:
        raise _fail(str(e)) from None

    typer.echo(namespace)


if __name__ == "__main__":
    app()
