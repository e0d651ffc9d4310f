"""CLI for group-ledger using Typer."""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal, InvalidOperation

import typer
from rich.console import Console
from rich.table import Table

from .config import load_settings
from .db import Database
from .exceptions import GroupLedgerError
from .models import (
    SPLIT_MODES,
    Expense,
    ExpenseFilter,
    LedgerSummary,
    MemberInput,
    Participant,
)
from .money import to_decimal
from .service import LedgerService
from .ui import confirm, select_category_interactive

app = typer.Typer(
    name="group-ledger",
    help="Track shared expenses, balances and settlements for groups",
)
group_app = typer.Typer(help="Create, inspect and delete groups")
participant_app = typer.Typer(help="Manage group participants")
expense_app = typer.Typer(help="Record and search expenses")

app.add_typer(group_app, name="group")
app.add_typer(participant_app, name="participant")
app.add_typer(expense_app, name="expense")

console = Console()

_options = {"verbose": False}

DATE_FORMATS = ["%Y-%m-%d"]


def setup_logging(verbose: bool = False):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Track shared expenses, balances and settlements for groups."""
    _options["verbose"] = verbose
    setup_logging(verbose)


@contextmanager
def open_service() -> Iterator[LedgerService]:
    """Load settings, open the database and report ledger errors."""
    db = None
    try:
        settings = load_settings()
        db = Database(settings.database_path)
        yield LedgerService(settings, db)
    except GroupLedgerError as e:
        console.print(f"\n[bold red]Error:[/bold red] {e}")
        if _options["verbose"]:
            raise
        sys.exit(1)
    finally:
        if db is not None:
            db.close()


# ============================================================================
# Parsing helpers
# ============================================================================


def parse_amount(raw: str) -> Decimal:
    """Parse a decimal amount from the command line."""
    try:
        value = to_decimal(raw.strip())
    except InvalidOperation as e:
        raise typer.BadParameter(f"'{raw}' is not a valid amount") from e
    if not value.is_finite():
        raise typer.BadParameter(f"'{raw}' is not a valid amount")
    return value


def parse_member(raw: str) -> MemberInput:
    """Parse ``NAME:EMAIL[:COLOR]``."""
    parts = raw.split(":")
    if len(parts) not in (2, 3) or not parts[0].strip() or "@" not in parts[1]:
        raise typer.BadParameter(f"Member '{raw}' must look like NAME:EMAIL[:COLOR]")
    return MemberInput(
        name=parts[0].strip(),
        email=parts[1].strip(),
        color=parts[2].strip() if len(parts) == 3 else None,
    )


def parse_shares(raw_shares: list[str] | None) -> dict[int, Decimal] | list[int]:
    """
    Parse share arguments.

    ``["3", "1"]`` gives an ordered id list (equal mode);
    ``["3=40", "1=60"]`` gives an id -> value mapping.
    """
    if not raw_shares:
        return []

    try:
        if all("=" not in raw for raw in raw_shares):
            return [int(raw) for raw in raw_shares]

        parsed: dict[int, Decimal] = {}
        for raw in raw_shares:
            if "=" not in raw:
                raise typer.BadParameter(
                    f"Share '{raw}' must look like PARTICIPANT_ID=VALUE"
                )
            participant_id, value = raw.split("=", 1)
            parsed[int(participant_id.strip())] = parse_amount(value)
        return parsed
    except ValueError as e:
        raise typer.BadParameter(f"Invalid share list: {e}") from e


def check_mode(mode: str) -> str:
    if mode not in SPLIT_MODES:
        raise typer.BadParameter(f"Mode must be one of: {', '.join(SPLIT_MODES)}")
    return mode


# ============================================================================
# Display helpers
# ============================================================================


def format_money(amount: Decimal, use_color: bool = True) -> str:
    """
    Format money in accounting style with alignment.

    Negative amounts use parentheses: ($85.02)
    Positive amounts have spaces:      $85.02
    """
    abs_amount = abs(amount)
    if amount < 0:
        if use_color:
            return f"($[red]{abs_amount:,.2f}[/red])"
        return f"(${abs_amount:,.2f})"
    if use_color:
        return f" [green]${abs_amount:,.2f}[/green] "
    return f" ${abs_amount:,.2f} "


def display_participants(participants: list[Participant]):
    table = Table(title="Participants", show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim", width=6)
    table.add_column("Name", style="cyan")
    table.add_column("Email")
    table.add_column("Status", justify="center")

    for participant in participants:
        status = (
            "[green]active[/green]"
            if participant.status == "active"
            else "[yellow]pending[/yellow]"
        )
        table.add_row(
            str(participant.id),
            f"[{participant.color}]●[/] {participant.name}",
            participant.email,
            status,
        )

    console.print(table)


def display_expenses(expenses: list[Expense], names: dict[int, str]):
    table = Table(title="Expenses", show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim", width=6)
    table.add_column("Date", width=10)
    table.add_column("Description", style="cyan", width=30)
    table.add_column("Category", style="yellow")
    table.add_column("Paid by")
    table.add_column("Amount", justify="right", width=12)
    table.add_column("Split", style="dim")

    for expense in expenses:
        desc = expense.description
        table.add_row(
            str(expense.id),
            expense.date.isoformat(),
            desc[:30] + "..." if len(desc) > 30 else desc,
            expense.category,
            names.get(expense.payer_id, f"#{expense.payer_id}"),
            format_money(expense.amount, use_color=False),
            expense.split_mode,
        )

    console.print(table)


def display_summary(summary: LedgerSummary, names: dict[int, str]):
    """Display balances and suggested settlements."""
    table = Table(title="Balances", show_header=True, header_style="bold magenta")
    table.add_column("Participant", style="cyan")
    table.add_column("Net", justify="right", width=14)

    for balance in summary.balances:
        table.add_row(
            names.get(balance.participant_id, f"#{balance.participant_id}"),
            format_money(balance.net),
        )

    console.print(table)
    console.print(f"  Total spent: {format_money(summary.total_spent, use_color=False)}")

    console.print("\n[bold]Suggested settlements:[/bold]")
    if not summary.settlements:
        console.print("  [green]✓ Everyone is settled up[/green]")
    for settlement in summary.settlements:
        console.print(
            f"  {names.get(settlement.from_participant_id, '?')} → "
            f"{names.get(settlement.to_participant_id, '?')}: "
            f"[bold]${settlement.amount:,.2f}[/bold]"
        )

    residual = summary.residual()
    if residual != 0:
        console.print(
            f"  [red]✗ Balances are off by {residual}; "
            f"some expenses reference unknown participants[/red]"
        )


def _names(participants: list[Participant]) -> dict[int, str]:
    return {participant.id: participant.name for participant in participants}


# ============================================================================
# Group commands
# ============================================================================


@group_app.command("create")
def group_create(
    name: str = typer.Argument(..., help="Group name"),
    member: list[str] | None = typer.Option(
        None, "--member", "-m", help="Extra participant as NAME:EMAIL[:COLOR]"
    ),
):
    """Create a group; you are added as its first participant."""
    members = [parse_member(raw) for raw in member or []]

    with open_service() as service:
        group = service.create_group(name, members)
        participants = service.db.get_participants(group.id)

        console.print(f"\n[bold green]✓ Created group {group.id}: {group.name}[/bold green]")
        display_participants(participants)


@group_app.command("list")
def group_list():
    """List groups you own or belong to."""
    with open_service() as service:
        groups = service.list_groups()

        if not groups:
            console.print("[yellow]No groups found.[/yellow]")
            return

        table = Table(title="Groups", show_header=True, header_style="bold magenta")
        table.add_column("ID", style="dim", width=6)
        table.add_column("Name", style="cyan")
        table.add_column("Created", style="dim")
        for group in groups:
            table.add_row(str(group.id), group.name, group.created_at.date().isoformat())
        console.print(table)


@group_app.command("show")
def group_show(group_id: int = typer.Argument(..., help="Group ID")):
    """Show a group's participants, expenses and balances."""
    with open_service() as service:
        group, participants, expenses, summary = service.get_group_summary(group_id)
        names = _names(participants)

        console.print(f"\n[bold]{group.name}[/bold] [dim](group {group.id})[/dim]\n")
        display_participants(participants)
        if expenses:
            display_expenses(expenses, names)
        else:
            console.print("[yellow]No expenses yet.[/yellow]")
        display_summary(summary, names)


@group_app.command("all")
def group_all():
    """Show combined balances across all your groups."""
    with open_service() as service:
        groups, participants, expenses, summary = service.get_all_groups_summary()

        console.print(
            f"\n[bold]All Groups[/bold] [dim]({len(groups)} groups, "
            f"{len(expenses)} expenses)[/dim]\n"
        )
        group_names = {group.id: group.name for group in groups}
        names = {
            participant.id: f"{participant.name} ({group_names[participant.group_id]})"
            for participant in participants
        }
        display_summary(summary, names)


@group_app.command("rename")
def group_rename(
    group_id: int = typer.Argument(..., help="Group ID"),
    name: str = typer.Argument(..., help="New name"),
):
    """Rename a group."""
    with open_service() as service:
        group = service.rename_group(group_id, name)
        console.print(f"[green]✓ Group {group.id} renamed to {group.name}[/green]")


@group_app.command("delete")
def group_delete(
    group_id: int = typer.Argument(..., help="Group ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation prompt"),
):
    """Delete a group with all its participants and expenses."""
    with open_service() as service:
        group = service.get_group(group_id)
        if not yes and not confirm(f"Delete group '{group.name}' and all its expenses?"):
            console.print("[yellow]Cancelled.[/yellow]")
            return

        service.delete_group(group_id)
        console.print(f"[green]✓ Deleted group {group_id}[/green]")


# ============================================================================
# Participant commands
# ============================================================================


@participant_app.command("add")
def participant_add(
    group_id: int = typer.Argument(..., help="Group ID"),
    name: str = typer.Argument(..., help="Display name"),
    email: str = typer.Argument(..., help="E-mail address"),
    color: str | None = typer.Option(None, "--color", help="Display color"),
    account: str | None = typer.Option(
        None, "--account", help="Link to an existing account right away"
    ),
):
    """Add a participant to a group."""
    with open_service() as service:
        participant, invite_token = service.add_participant(
            group_id, name=name, email=email, color=color, account_id=account
        )

        console.print(
            f"[green]✓ Added {participant.name} (participant {participant.id}, "
            f"{participant.status})[/green]"
        )
        if invite_token:
            console.print(f"  Invite token: [cyan]{invite_token}[/cyan]")


@participant_app.command("update")
def participant_update(
    participant_id: int = typer.Argument(..., help="Participant ID"),
    name: str | None = typer.Option(None, "--name", help="New display name"),
    color: str | None = typer.Option(None, "--color", help="New display color"),
    avatar: str | None = typer.Option(None, "--avatar", help="New avatar URL"),
):
    """Update a participant's display details."""
    with open_service() as service:
        participant = service.update_participant(
            participant_id, name=name, color=color, avatar=avatar
        )
        console.print(f"[green]✓ Updated participant {participant.id}[/green]")


@participant_app.command("remove")
def participant_remove(
    participant_id: int = typer.Argument(..., help="Participant ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation prompt"),
):
    """Remove a settled participant and the expenses they were part of."""
    with open_service() as service:
        participant = service.get_participant(participant_id)
        if not yes and not confirm(
            f"Remove {participant.name} and every expense they are part of?"
        ):
            console.print("[yellow]Cancelled.[/yellow]")
            return

        service.remove_participant(participant_id)
        console.print(f"[green]✓ Removed participant {participant_id}[/green]")


@participant_app.command("accept")
def participant_accept(
    token: str = typer.Argument(..., help="Invite token"),
    account: str | None = typer.Option(None, "--account", help="Account to link"),
    email: str | None = typer.Option(None, "--email", help="Account e-mail"),
    name: str | None = typer.Option(None, "--name", help="Display name"),
):
    """Accept an invite, linking the participant to an account."""
    with open_service() as service:
        participant = service.accept_invite(
            token,
            account_id=account or service.settings.account_id,
            email=email or service.settings.account_email,
            name=name,
        )
        console.print(
            f"[green]✓ {participant.name} is now active in group "
            f"{participant.group_id}[/green]"
        )


# ============================================================================
# Expense commands
# ============================================================================


def _resolve_category(
    service: LedgerService,
    group_id: int,
    description: str,
    category: str | None,
    pick_category: bool,
) -> str | None:
    if not pick_category:
        return category
    return select_category_interactive(
        service.list_categories(group_id), description, default=category
    )


@expense_app.command("add")
def expense_add(
    group_id: int = typer.Argument(..., help="Group ID"),
    description: str = typer.Argument(..., help="What was bought"),
    amount: str = typer.Argument(..., help="Total amount, e.g. 42.50"),
    payer: int = typer.Option(..., "--payer", "-p", help="Participant ID who paid"),
    mode: str = typer.Option("equal", "--mode", help="equal, custom or percentage"),
    share: list[str] | None = typer.Option(
        None,
        "--share",
        "-s",
        help="Participant ID (equal) or PARTICIPANT_ID=VALUE (custom/percentage)",
    ),
    category: str | None = typer.Option(None, "--category", "-c", help="Category tag"),
    pick_category: bool = typer.Option(
        False, "--pick-category", help="Choose the category interactively"
    ),
    expense_date: datetime | None = typer.Option(
        None, "--date", formats=DATE_FORMATS, help="Expense date (default: today)"
    ),
):
    """Record an expense. Equal splits cover the whole group by default."""
    shares = parse_shares(share)
    total = parse_amount(amount)
    split_mode = check_mode(mode)

    with open_service() as service:
        expense = service.add_expense(
            group_id,
            description=description,
            amount=total,
            payer_id=payer,
            split_mode=split_mode,
            shares=shares,
            category=_resolve_category(
                service, group_id, description, category, pick_category
            ),
            expense_date=expense_date.date() if expense_date else None,
        )

        names = _names(service.db.get_participants(group_id))
        console.print(
            f"\n[bold green]✓ Added expense {expense.id}: {expense.description} "
            f"({format_money(expense.amount, use_color=False).strip()})[/bold green]"
        )
        for split in expense.splits:
            console.print(
                f"  {names.get(split.participant_id, '?')}: ${split.amount:,.2f}"
            )


@expense_app.command("update")
def expense_update(
    expense_id: int = typer.Argument(..., help="Expense ID"),
    description: str = typer.Argument(..., help="What was bought"),
    amount: str = typer.Argument(..., help="Total amount"),
    payer: int = typer.Option(..., "--payer", "-p", help="Participant ID who paid"),
    mode: str = typer.Option("equal", "--mode", help="equal, custom or percentage"),
    share: list[str] | None = typer.Option(
        None, "--share", "-s", help="Participant ID or PARTICIPANT_ID=VALUE"
    ),
    category: str | None = typer.Option(None, "--category", "-c", help="Category tag"),
    expense_date: datetime | None = typer.Option(
        None, "--date", formats=DATE_FORMATS, help="Expense date"
    ),
):
    """Replace an expense's details and re-split it."""
    shares = parse_shares(share)
    total = parse_amount(amount)
    split_mode = check_mode(mode)

    with open_service() as service:
        expense = service.update_expense(
            expense_id,
            description=description,
            amount=total,
            payer_id=payer,
            split_mode=split_mode,
            shares=shares,
            category=category,
            expense_date=expense_date.date() if expense_date else None,
        )
        console.print(f"[green]✓ Updated expense {expense.id}[/green]")


@expense_app.command("delete")
def expense_delete(expense_id: int = typer.Argument(..., help="Expense ID")):
    """Delete an expense."""
    with open_service() as service:
        service.delete_expense(expense_id)
        console.print(f"[green]✓ Deleted expense {expense_id}[/green]")


@expense_app.command("list")
def expense_list(
    group_id: int = typer.Argument(..., help="Group ID"),
    query: str | None = typer.Option(None, "--query", "-q", help="Search descriptions"),
    participant: int | None = typer.Option(
        None, "--participant", help="Only expenses this participant is part of"
    ),
    min_amount: str | None = typer.Option(None, "--min", help="Minimum amount"),
    max_amount: str | None = typer.Option(None, "--max", help="Maximum amount"),
    start: datetime | None = typer.Option(
        None, "--start", formats=DATE_FORMATS, help="On or after this date"
    ),
    end: datetime | None = typer.Option(
        None, "--end", formats=DATE_FORMATS, help="On or before this date"
    ),
):
    """List a group's expenses, newest first."""
    expense_filter = ExpenseFilter(
        query=query,
        participant_id=participant,
        min_amount=parse_amount(min_amount) if min_amount else None,
        max_amount=parse_amount(max_amount) if max_amount else None,
        start=start.date() if start else None,
        end=end.date() if end else None,
    )

    with open_service() as service:
        expenses = service.list_expenses(group_id, expense_filter)
        if not expenses:
            console.print("[yellow]No expenses found.[/yellow]")
            return

        display_expenses(expenses, _names(service.db.get_participants(group_id)))


# ============================================================================
# Balances
# ============================================================================


@app.command()
def balances(group_id: int = typer.Argument(..., help="Group ID")):
    """Show net balances and suggested settlements for a group."""
    with open_service() as service:
        group, participants, _expenses, summary = service.get_group_summary(group_id)

        console.print(f"\n[bold]{group.name}[/bold]\n")
        display_summary(summary, _names(participants))


if __name__ == "__main__":
    app()
