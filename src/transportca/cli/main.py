"""
transportca CLI

Commands for working with transport CAs:
- generate: Create a self-signed CA and write ca.crt/ca.key
- inspect: Show the details of a CA certificate
- import-secret: Store a CA certificate (and key) as a secret
- reconcile: Run one transport CA reconciliation pass for a cluster
"""

from __future__ import annotations

import asyncio
import logging
import os
from datetime import timedelta
from pathlib import Path
from typing import Optional

import click
import yaml
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from transportca import __version__
from transportca.certificates.ca import CertificateAuthority, new_self_signed_ca
from transportca.certificates.parsing import (
    internal_secret_data,
    parse_custom_ca_secret,
    parse_pem_certs,
)
from transportca.config import OperatorConfig, load_config
from transportca.constants import CA_CERT_FILE_NAME, CA_KEY_FILE_NAME
from transportca.driver import Driver
from transportca.events import InMemoryEventRecorder
from transportca.exceptions import TransportCAError
from transportca.models import Cluster, Secret
from transportca.storage import create_secret_store
from transportca.transport import AuthoritativeCA, TransportCAReconciler

console = Console()
logger = logging.getLogger(__name__)


def _format_ca(ca: CertificateAuthority, title: str) -> Table:
    table = Table(title=title)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Common name", ca.common_name)
    table.add_row("Subject", ca.certificate.subject.rfc4514_string())
    table.add_row("Not before", ca.not_before.isoformat())
    table.add_row("Not after", ca.not_after.isoformat())
    table.add_row("Private key", "yes" if ca.has_private_key else "no")
    table.add_row("SHA-256", ca.fingerprint)
    return table


@click.group()
@click.version_option(__version__, prog_name="transportca")
@click.option("--config", "config_path", default=None, help="Path to the operator config YAML")
@click.option(
    "--log-level",
    default=lambda: os.getenv("TRANSPORTCA_LOG_LEVEL"),
    help="Logging level (overrides the config file)",
)
@click.pass_context
def app(ctx: click.Context, config_path: Optional[str], log_level: Optional[str]) -> None:
    """transportca - transport CA lifecycle for clustered systems."""
    try:
        config = load_config(config_path)
    except TransportCAError as exc:
        raise click.ClickException(str(exc)) from exc
    logging.basicConfig(
        level=(log_level or config.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = config


@app.command("generate")
@click.option("--name", required=True, help="Common name of the CA")
@click.option("--validity-days", default=365, show_default=True, type=click.IntRange(min=1))
@click.option(
    "--out-dir",
    default=".",
    type=click.Path(file_okay=False),
    help="Directory receiving ca.crt and ca.key",
)
def generate(name: str, validity_days: int, out_dir: str) -> None:
    """Generate a self-signed CA."""
    ca = new_self_signed_ca(common_name=name, validity=timedelta(days=validity_days))
    dest = Path(out_dir)
    dest.mkdir(parents=True, exist_ok=True)
    for file_name, content in internal_secret_data(ca).items():
        (dest / file_name).write_bytes(content)
    console.print(f"[green]✓[/green] Generated CA {name} in {dest}")
    console.print(_format_ca(ca, "Generated CA"))


@app.command("inspect")
@click.argument("cert_path", type=click.Path(exists=True, dir_okay=False))
def inspect_cert(cert_path: str) -> None:
    """Show the details of a PEM CA certificate."""
    try:
        certs = parse_pem_certs(Path(cert_path).read_bytes())
    except ValueError as exc:
        console.print(f"[red]Error:[/red] cannot parse {cert_path}: {exc}")
        raise SystemExit(1)
    for i, cert in enumerate(certs):
        console.print(_format_ca(CertificateAuthority(certificate=cert), f"Certificate {i}"))


async def _import_secret(config: OperatorConfig, secret: Secret) -> None:
    store = create_secret_store(config.storage)
    await store.connect()
    try:
        await config.new_context().bounded(store.put(secret), "import secret")
    finally:
        await store.disconnect()


@app.command("import-secret")
@click.option("--namespace", required=True)
@click.option("--name", required=True)
@click.option("--cert", "cert_path", required=True, type=click.Path(exists=True, dir_okay=False))
@click.option("--key", "key_path", default=None, type=click.Path(exists=True, dir_okay=False))
@click.pass_obj
def import_secret(
    config: OperatorConfig,
    namespace: str,
    name: str,
    cert_path: str,
    key_path: Optional[str],
) -> None:
    """Store a CA certificate and optional key as a secret."""
    data = {CA_CERT_FILE_NAME: Path(cert_path).read_bytes()}
    if key_path:
        data[CA_KEY_FILE_NAME] = Path(key_path).read_bytes()
    secret = Secret(namespace=namespace, name=name, data=data)
    try:
        parse_custom_ca_secret(secret)
        asyncio.run(_import_secret(config, secret))
    except TransportCAError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise SystemExit(1)
    console.print(f"[green]✓[/green] Imported secret {namespace}/{name}")


def _load_cluster(path: str) -> tuple[Cluster, dict[str, str]]:
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    labels = data.pop("labels", None) or {}
    return Cluster.model_validate(data), {str(k): str(v) for k, v in labels.items()}


async def _reconcile(
    config: OperatorConfig,
    cluster: Cluster,
    labels: dict[str, str],
    global_ca: Optional[CertificateAuthority],
    recorder: InMemoryEventRecorder,
) -> AuthoritativeCA:
    store = create_secret_store(config.storage)
    await store.connect()
    try:
        driver = Driver(store=store, recorder=recorder)
        reconciler = TransportCAReconciler(driver, namer=config.namer())
        return await reconciler.reconcile_or_retrieve_ca(
            config.new_context(), cluster, labels, global_ca, config.rotation
        )
    finally:
        await store.disconnect()


@app.command("reconcile")
@click.argument("cluster_path", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--shared-ca",
    "shared_ca_path",
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help="PEM certificate of a CA shared across clusters",
)
@click.pass_obj
def reconcile(config: OperatorConfig, cluster_path: str, shared_ca_path: Optional[str]) -> None:
    """Run one transport CA reconciliation pass for a cluster manifest."""
    try:
        cluster, labels = _load_cluster(cluster_path)
    except (OSError, yaml.YAMLError, ValidationError) as exc:
        console.print(f"[red]Error:[/red] invalid cluster manifest {cluster_path}: {exc}")
        raise SystemExit(1)

    global_ca = None
    if shared_ca_path:
        try:
            certs = parse_pem_certs(Path(shared_ca_path).read_bytes())
        except ValueError as exc:
            console.print(f"[red]Error:[/red] cannot parse shared CA {shared_ca_path}: {exc}")
            raise SystemExit(1)
        global_ca = CertificateAuthority(certificate=certs[0])

    recorder = InMemoryEventRecorder()
    try:
        result = asyncio.run(_reconcile(config, cluster, labels, global_ca, recorder))
    except TransportCAError as exc:
        for event in recorder.events:
            console.print(f"[yellow]{event.severity.value} {event.reason}:[/yellow] {event.message}")
        console.print(f"[red]Error:[/red] {exc}")
        raise SystemExit(1)

    console.print(
        f"[green]✓[/green] Transport CA for {cluster.identity}: {result.source.value}"
    )
    console.print(_format_ca(result.ca, "Authoritative CA"))


def main() -> None:
    app()


if __name__ == "__main__":
    main()
