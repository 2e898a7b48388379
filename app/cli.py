"""CLI commands for the schema service."""

import asyncio
import json
import sys

import click

from app.core.exceptions import SchemaServiceError


def _settings(site_url=None, layout=None):
    from app.core.config import Settings

    overrides = {}
    if site_url:
        overrides["SITE_URL"] = site_url
    if layout:
        overrides["SCHEMA_LAYOUT"] = layout
    return Settings(**overrides)


def _dump(data):
    click.echo(json.dumps(data, indent=2, ensure_ascii=False))


@click.group()
@click.option("--log-level", default="WARNING", help="Log level for CLI output")
def cli(log_level):
    """Canonical schema service commands."""
    from app.core.config import Settings
    from app.core.logging import configure_logging

    configure_logging(testing=Settings().TESTING, level=log_level, json_logs=False)


@cli.command()
@click.option("--host", default="127.0.0.1", help="Host to bind to")
@click.option("--port", default=8000, type=int, help="Port to bind to")
@click.option("--reload", is_flag=True, help="Reload on code changes")
def serve(host, port, reload):
    """Run the HTTP service."""
    import uvicorn

    click.echo(f"Starting schema service on http://{host}:{port}")
    uvicorn.run("app.main:app", host=host, port=port, reload=reload)


@cli.command()
@click.argument("entity_file", type=click.File("r"), default="-")
@click.option("--site-url", help="Site origin (defaults to SITE_URL)")
@click.option(
    "--layout",
    type=click.Choice(["centralized", "parallel"]),
    help="Schema endpoint layout (defaults to SCHEMA_LAYOUT)",
)
@click.option("--links", is_flag=True, help="Also print the head link tags")
def generate(entity_file, site_url, layout, links):
    """Generate the linked JSON-LD for an entity read from a JSON file."""
    from pydantic import ValidationError as PydanticValidationError

    from app.models.content import ContentEntity
    from app.schema.endpoints import EndpointRouter
    from app.schema.generator import SchemaGenerator
    from app.schema.linker import CanonicalLinker
    from app.schema.markup import head_links

    settings = _settings(site_url, layout)
    try:
        entity = ContentEntity.model_validate_json(entity_file.read())
    except PydanticValidationError as e:
        raise click.ClickException(f"Invalid entity: {e}") from e

    router = EndpointRouter(settings.SITE_URL, layout=settings.SCHEMA_LAYOUT)
    linker = CanonicalLinker(settings.SITE_URL)
    try:
        content_url = entity.url or router.content_url(entity.type, entity.id)
        document = linker.link(SchemaGenerator().generate(entity), content_url)
        mapping = router.register(entity.type, entity.id, content_url)
    except SchemaServiceError as e:
        raise click.ClickException(str(e)) from e

    _dump(document.data)
    if links:
        click.echo(head_links(mapping).html)


@cli.command()
@click.argument("entity_type")
@click.argument("entity_id")
def fetch(entity_type, entity_id):
    """Fetch an entity from the CMS and print its linked JSON-LD."""
    from app.core.events import build_state

    async def run():
        state = build_state(_settings())
        try:
            return await state.service.regenerate(entity_type, entity_id, force=True)
        finally:
            for close in state.closers:
                await close()

    try:
        document = asyncio.run(run())
    except SchemaServiceError as e:
        raise click.ClickException(str(e)) from e
    _dump(document.data)


@cli.command()
@click.argument("urls", nargs=-1, required=True)
@click.option("--timeout", default=10.0, type=float, help="Request timeout in seconds")
def audit(urls, timeout):
    """Check the canonical markup of live content pages."""
    from app.content.audit import CanonicalAuditor

    async def run():
        reports = []
        async with CanonicalAuditor(timeout=timeout) as auditor:
            for url in urls:
                try:
                    reports.append(await auditor.audit(url))
                except SchemaServiceError as e:
                    click.echo(f"{url}: {e}", err=True)
                    reports.append(None)
        return reports

    failed = False
    for url, report in zip(urls, asyncio.run(run())):
        if report is None:
            failed = True
            continue
        if report.ok:
            click.echo(f"OK   {url} -> {report.canonical_url}")
        else:
            failed = True
            click.echo(f"FAIL {url}: {'; '.join(report.issues)}")

    if failed:
        sys.exit(1)


def main():
    """Console script entry point."""
    cli()


if __name__ == "__main__":
    main()
