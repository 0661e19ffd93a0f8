# Overview: Flask CLI command groups for vendor provisioning and database bootstrap.

# backend/onboarding/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# Database bootstrap:
# - python -m flask system init-db
#   Create all tables (no-op for existing ones).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Vendor status (out-of-band, before onboarding starts):
# - python -m flask vendors provision --document 123.456.789-09 --status confirmado
#   Create the status record for a document, or update its status.
# - python -m flask vendors list [--status confirmado]
#   List status records with linked identifiers.
# - python -m flask vendors show 12345678909
#   Print a status record and what the wizard lookup would answer.
# - python -m flask vendors set-status 12345678909 desistente
#   Move an existing vendor through the pipeline.

import click
from flask.cli import with_appcontext

from .errors import OnboardingError
from .extensions import db
from .models.vendors import STATUS_SELECTED, VENDOR_STATUSES
from .services import vendor_lookup_service, vendor_status_service
from .tax_document import format_cpf_cnpj


@click.group('system')
def system_group():
    """Database bootstrap commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables."""
    db.create_all()
    click.echo("PASS Tables created.")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask vendors provision' to add vendors.")


@click.group('vendors')
def vendors_group():
    """Vendor status administration."""


@vendors_group.command('provision')
@click.option('--document', required=True, help='CPF or CNPJ (masked or digits)')
@click.option('--status', type=click.Choice(VENDOR_STATUSES), default=STATUS_SELECTED, help='Pipeline status')
@with_appcontext
def provision_vendor_cli(document, status):
    """Create or update a vendor status record."""
    try:
        record, created = vendor_status_service.provision_vendor(document=document, status=status)
    except OnboardingError as e:
        raise click.ClickException(str(e))

    action = "Created" if created else "Updated"
    click.echo(f"PASS {action} vendor {format_cpf_cnpj(record.vendor_id)} with status '{record.status}'")


@vendors_group.command('list')
@click.option('--status', type=click.Choice(VENDOR_STATUSES), help='Filter by status')
@with_appcontext
def list_vendors_cli(status):
    """List vendor status records."""
    try:
        records = vendor_status_service.list_vendors(status=status)
    except OnboardingError as e:
        raise click.ClickException(str(e))

    if not records:
        click.echo("No vendors found.")
        return

    click.echo("\n" + "="*90)
    click.echo(f"{'VENDOR':<16} {'STATUS':<24} {'MERCHANT':<10} {'EQUIPMENT':<10} {'BANNER':<10}")
    click.echo("="*90)
    for r in records:
        click.echo(
            f"{r.vendor_id:<16} {r.status:<24} {str(r.merchant_id or '-'):<10} "
            f"{str(r.equipment_profile_id or '-'):<10} {str(r.banner_profile_id or '-'):<10}"
        )
    click.echo("="*90 + "\n")


@vendors_group.command('show')
@click.argument('document')
@with_appcontext
def show_vendor_cli(document):
    """Show a vendor status record and its lookup result."""
    try:
        result = vendor_lookup_service.lookup_vendor(document)
    except OnboardingError as e:
        raise click.ClickException(str(e))

    click.echo(f"Vendor:      {format_cpf_cnpj(result.vendor_id)} ({result.vendor_id})")
    click.echo(f"Status:      {result.status}")
    click.echo(f"Can continue: {'Yes' if result.can_continue else 'No'}")
    click.echo(f"Mode:        {result.mode}")
    click.echo(f"Merchant:    {result.merchant_id or '-'}")
    click.echo(f"Equipment:   {result.equipment_profile_id or '-'}")
    click.echo(f"Banner:      {result.banner_profile_id or '-'}")


@vendors_group.command('set-status')
@click.argument('document')
@click.argument('status', type=click.Choice(VENDOR_STATUSES))
@with_appcontext
def set_status_cli(document, status):
    """Change the pipeline status of an existing vendor."""
    try:
        record = vendor_status_service.set_vendor_status(document=document, status=status)
    except OnboardingError as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS {record.vendor_id} is now '{record.status}'")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(vendors_group)
