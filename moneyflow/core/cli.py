"""CLI commands for the application."""
import json

import click
from flask.cli import with_appcontext

from moneyflow.core.errors import LedgerError
from moneyflow.core.money import format_amount
from moneyflow.core.time import current_period, parse_year_month, prev_period


def _period(ym):
    try:
        return parse_year_month(ym).to_string() if ym else current_period()
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint='--ym')


def _services():
    from moneyflow.modules.allocation.service import AllocationService
    from moneyflow.modules.backup.service import BackupService
    from moneyflow.modules.carryover.service import CarryoverService
    from moneyflow.modules.ledger.service import LedgerService
    from moneyflow.modules.ledger.store import get_store
    from moneyflow.modules.reports.service import ReportService

    store = get_store()
    ledger = LedgerService(store)
    return {
        'ledger': ledger,
        'allocation': AllocationService(store, ledger),
        'carryover': CarryoverService(store, ledger),
        'reports': ReportService(store, ledger),
        'backup': BackupService(store),
    }


@click.group()
def ledger_cli():
    """Envelope ledger commands."""
    pass


@ledger_cli.command()
@click.option('--ym', help='Year-Month (YYYY-MM), defaults to current')
@with_appcontext
def summary(ym):
    """Show the dashboard summary of a month."""
    period = _period(ym)
    reports = _services()['reports']
    data = reports.get_dashboard_summary(period)

    click.echo(f"Summary for {period}")
    click.echo(f"  Total income: {format_amount(data['total_income'])}")
    click.echo(f"  Total expense: {format_amount(data['total_expense'])}")
    click.echo(f"  Total budget: {format_amount(data['total_budget'])}")
    click.echo(f"  Remaining: {format_amount(data['total_remaining'])}")
    click.echo(f"  Saved: {format_amount(data['saved_amount'])}")
    click.echo(f"  Utilization: {data['budget_utilization']:.1f}%")
    click.echo(f"  Over-budget expenses: {data['over_budget_count']}")

    for item in reports.get_envelope_totals(period):
        click.echo(f"  {item['envelope']['name']}: {format_amount(item['total'])}")


@ledger_cli.command()
@click.option('--ym', help='Month to review (YYYY-MM), defaults to previous')
@with_appcontext
def review(ym):
    """List categories with budget left at the end of a month."""
    period = _period(ym) if ym else prev_period(current_period())
    candidates = _services()['carryover'].get_categories_with_remaining_budget(period)

    if not candidates:
        click.echo(f"No remaining budgets in {period}")
        return

    click.echo(f"Remaining budgets in {period}:")
    click.echo("-" * 60)
    for item in candidates:
        category = item['category']
        click.echo(f"ID: {category['id']}  {category['name']}: {format_amount(item['remaining'])}")


@ledger_cli.command('carry-over')
@click.option('--category-id', type=int, required=True, help='Category ID')
@click.option('--ym', help='Month being closed (YYYY-MM), defaults to previous')
@click.option('--action', type=click.Choice(['carry', 'reset']), default='carry')
@click.option('--amount', help='Amount to carry, defaults to everything remaining')
@click.option('--note', default='')
@with_appcontext
def carry_over(category_id, ym, action, amount, note):
    """Carry a category's remaining budget into the next month, or reset it."""
    period = _period(ym) if ym else prev_period(current_period())
    services = _services()
    try:
        services['ledger'].get_category(category_id)
        result = services['carryover'].process_carry_over(
            category_id, period, action, carried_amount=amount, note=note
        )
    except (LedgerError, ValueError) as e:
        raise click.ClickException(str(e))

    if not result['processed']:
        click.echo(f"{result['message']} for category {category_id} in {period}")
        return

    click.echo(f"✓ {action} for category {category_id}: "
               f"{format_amount(result['carried_amount'])} of {format_amount(result['remaining_budget'])}")
    click.echo(f"  From: {result['from_period']}")
    click.echo(f"  To: {result['to_period']}")


@ledger_cli.command()
@click.option('--ym', help='Year-Month (YYYY-MM), defaults to current')
@with_appcontext
def autofill(ym):
    """Copy last month's budgets into unbudgeted categories."""
    period = _period(ym)
    created = _services()['allocation'].autofill_from_previous_period(period)
    click.echo(f"✓ Created {len(created)} budgets for {period}")


@ledger_cli.command()
@click.option('--ym', help='Year-Month (YYYY-MM), defaults to current')
@with_appcontext
def snapshot(ym):
    """Save the monthly snapshot."""
    period = _period(ym)
    saved = _services()['reports'].save_monthly_snapshot(period)
    click.echo(f"✓ Saved snapshot for {period} (id {saved['id']})")


@ledger_cli.command()
@click.argument('output', type=click.File('w'), default='-')
@with_appcontext
def export(output):
    """Write a full backup document as JSON."""
    data = _services()['backup'].export_all_data()
    json.dump(data, output, ensure_ascii=False, indent=2, default=str)
    output.write('\n')


@ledger_cli.command('import')
@click.argument('source', type=click.File('r'))
@click.confirmation_option(prompt='This replaces all ledger data. Continue?')
@with_appcontext
def import_backup(source):
    """Replace all ledger data with a backup document."""
    try:
        data = json.load(source)
    except json.JSONDecodeError as e:
        raise click.ClickException(f"Invalid JSON: {e}")

    try:
        counts = _services()['backup'].import_all_data(data)
    except LedgerError as e:
        raise click.ClickException(str(e))

    click.echo("✓ Backup imported")
    for key, count in counts.items():
        click.echo(f"  {key}: {count}")


def register_cli_commands(app):
    """Register CLI commands with the app."""
    app.cli.add_command(ledger_cli, name='ledger')
