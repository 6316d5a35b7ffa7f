"""CLI for VaultSense: generate, score, health, import, export, vault (create/list/add/remove/changepw)."""

import argparse
import logging
import os
from getpass import getpass

from rich import print
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.progress import Progress
from rich.table import Table

from .config import load_config
from .errors import VaultSenseError
from .evaluator import calculate_strength
from .exporter import dump_export, records_from_export
from .generator import GenerationRequest, CharClass, generate
from .health import analyze
from .importer import check_upload, commit, detect_and_parse, new_record_id, preview
from .models import CredentialRecord
from .storage import default_vault_path, read_bytes, atomic_write_bytes
from .suggestions import suggest_improvements
from .vault import EncryptedVaultStore, change_master_password, check_master_password, create_vault, unlock

logger = logging.getLogger("vaultsense")


def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )


def _vault_path(args, cfg) -> str:
    return args.file or cfg.get("vault_path") or default_vault_path()


def _open_store(args, cfg) -> EncryptedVaultStore:
    path = _vault_path(args, cfg)
    master = getpass("Vault master password: ")
    return EncryptedVaultStore(unlock(master, path), path)


def _request_from_args(args, cfg) -> GenerationRequest:
    base = GenerationRequest.from_settings(cfg)
    classes = set(base.classes)
    for flag, cls in (
        ("no_upper", CharClass.UPPERCASE),
        ("no_lower", CharClass.LOWERCASE),
        ("no_digits", CharClass.DIGIT),
        ("no_symbols", CharClass.SYMBOL),
    ):
        if getattr(args, flag):
            classes.discard(cls)
    return GenerationRequest.of(
        args.length or base.length,
        classes,
        args.exclude_similar or base.exclude_ambiguous_lookalikes,
    )


def cmd_generate(args, cfg):
    request = _request_from_args(args, cfg)
    for i in range(args.copies):
        pw = generate(request)
        print(f"[bold green]Password #{i+1}:[/bold green] {escape(pw)}")


def cmd_score(args, cfg):
    pw = args.password
    breakdown = calculate_strength(pw)
    sugg = suggest_improvements(pw, GenerationRequest.from_settings(cfg))
    header = f"Score: {breakdown.score} / 100 ({sugg['label']}, {sugg['score']} / 5)"
    flags = [
        ("Uppercase", breakdown.has_upper),
        ("Lowercase", breakdown.has_lower),
        ("Numbers", breakdown.has_digit),
        ("Symbols", breakdown.has_symbol),
    ]
    body = "\n".join(f"{'✓' if ok else '✗'} {name}" for name, ok in flags)
    print(Panel(body, title=header))
    if sugg["suggestions"]:
        print("\n[bold]Suggestions:[/bold]")
        for s in sugg["suggestions"]:
            print(f" • {escape(s)}")
    if sugg["examples"]:
        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("Example stronger password")
        for ex in sugg["examples"]:
            table.add_row(escape(ex))
        print("\n")
        print(table)


def cmd_health(args, cfg):
    if args.input:
        records = records_from_export(read_bytes(args.input))
    else:
        store = _open_store(args, cfg)
        records = store.list(cfg["owner_id"])
    report = analyze(records, stale_after_months=int(cfg["stale_after_months"]))

    summary = (
        f"Total passwords: {report.total}\n"
        f"Strong: {report.strong_count}\n"
        f"Weak: {report.weak_count}\n"
        f"Reused: {report.duplicate_count}\n"
        f"Not changed in {cfg['stale_after_months']} months: {report.stale_count}"
    )
    print(Panel(summary, title=f"Security score: {report.composite_score:.0f} / 100"))

    sections = [
        ("Weak passwords", report.weak_records()),
        ("Reused passwords", report.duplicate_records()),
        ("Old passwords", report.stale_records()),
    ]
    for title, rows in sections:
        if not rows:
            continue
        table = Table(title=title, show_header=True, header_style="bold cyan")
        table.add_column("Title")
        table.add_column("Username")
        table.add_column("Strength", justify="right")
        table.add_column("Last modified")
        for r in rows:
            table.add_row(
                escape(r.title), escape(r.username), str(calculate_strength(r.secret).score),
                r.last_modified.strftime("%Y-%m-%d"),
            )
        print(table)


def cmd_import(args, cfg):
    check_upload(args.input, os.path.getsize(args.input), int(cfg["max_import_bytes"]))
    candidates = detect_and_parse(args.input, read_bytes(args.input))
    if not candidates:
        print("[yellow]No passwords found in file.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("#", width=4)
    table.add_column("Title")
    table.add_column("Username")
    table.add_column("Category")
    table.add_column("Strength", justify="right")
    for i, (c, strength) in enumerate(preview(candidates)):
        table.add_row(str(i), escape(c.title), escape(c.username or c.email), escape(c.category), str(strength.score))
    print(table)
    print(f"Found {len(candidates)} passwords to import")

    if args.dry_run:
        return
    if not args.yes:
        confirm = input(f"Import {len(candidates)} passwords into the vault? (yes/NO): ")
        if confirm.lower() != "yes":
            print("Aborted.")
            return

    store = _open_store(args, cfg)
    with Progress() as progress:
        task = progress.add_task("Importing", total=len(candidates))
        outcome = commit(
            candidates, store, cfg["owner_id"],
            on_progress=lambda done, total: progress.update(task, completed=done),
        )
    print(f"[green]Successfully imported {outcome.succeeded} of {outcome.total} passwords[/green]")
    for e in outcome.errors:
        print(f"[red] • {escape(e)}[/red]")


def cmd_export(args, cfg):
    store = _open_store(args, cfg)
    records = store.list(cfg["owner_id"])
    out = args.output or os.path.join(os.getcwd(), "vaultsense-export.json")
    atomic_write_bytes(out, dump_export(records))
    print(f"[green]Exported {len(records)} passwords to:[/green] {out}")
    print("[yellow]Note: the export is NOT encrypted; protect or delete it after use.[/yellow]")


# Vault subcommands

def cmd_vault_create(args, cfg):
    path = _vault_path(args, cfg)
    master = getpass("Enter new master password: ")
    check_master_password(master, getpass("Confirm master password: "))
    create_vault(master, path, cfg["kdf"])
    print(f"[green]Created vault at:[/green] {path}")


def cmd_vault_add(args, cfg):
    store = _open_store(args, cfg)
    title = args.title or input("Title (e.g., site): ")
    username = args.username or input("Username: ")
    password = args.password or getpass("Password (input hidden): ")
    record = CredentialRecord(
        id=new_record_id(),
        title=title,
        secret=password,
        category=args.category,
        username=username,
        website_url=args.url or "",
        notes=args.notes or "",
        owner_id=cfg["owner_id"],
    )
    record.created_at = record.last_modified
    store.create(record)
    print("[green]Entry added to vault.[/green]")


def cmd_vault_list(args, cfg):
    store = _open_store(args, cfg)
    records = store.list(cfg["owner_id"])
    if not records:
        print("[yellow]Vault is empty.[/yellow]")
        return
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("ID")
    table.add_column("Title")
    table.add_column("Username")
    table.add_column("Category")
    table.add_column("Notes")
    for r in records:
        table.add_row(r.id, escape(r.title), escape(r.username), escape(r.category), escape((r.notes or "")[:40]))
    print(table)


def cmd_vault_remove(args, cfg):
    store = _open_store(args, cfg)
    store.delete(args.id)
    print("[green]Removed entry.[/green]")


def cmd_vault_changepw(args, cfg):
    """Change the master password: unlock with the old password then re-encrypt with the new one."""
    path = _vault_path(args, cfg)
    context = unlock(getpass("Current master password: "), path)
    new = getpass("New master password: ")
    check_master_password(new, getpass("Confirm new master password: "))
    change_master_password(context, new, path)
    print("[green]Master password changed and vault re-encrypted.[/green]")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="vaultsense")
    parser.add_argument("--verbose", "-v", action="store_true", help="Show debug logging")
    parser.add_argument("--config", type=str, help="Path to config.json")
    sub = parser.add_subparsers(dest="cmd", required=True)

    gen = sub.add_parser("generate", help="Generate one or more passwords")
    gen.add_argument("--length", type=int, help="Password length (default from settings)")
    gen.add_argument("--no-symbols", action="store_true", help="Disable symbols")
    gen.add_argument("--no-upper", action="store_true", help="Disable uppercase")
    gen.add_argument("--no-lower", action="store_true", help="Disable lowercase")
    gen.add_argument("--no-digits", action="store_true", help="Disable digits")
    gen.add_argument("--exclude-similar", action="store_true", help="Exclude look-alike characters (i l 1 L o 0 O)")
    gen.add_argument("--copies", type=int, default=1, help="How many passwords to generate")
    gen.set_defaults(func=cmd_generate)

    sc = sub.add_parser("score", help="Score a password and show suggestions")
    sc.add_argument("password", type=str, help="Password to evaluate (wrap in quotes)")
    sc.set_defaults(func=cmd_score)

    hl = sub.add_parser("health", help="Analyze weak, reused and old passwords")
    hl.add_argument("--file", "-f", type=str, help="Path to vault file")
    hl.add_argument("--input", "-i", type=str, help="Analyze a JSON export instead of the vault")
    hl.set_defaults(func=cmd_health)

    im = sub.add_parser("import", help="Import passwords from a CSV, JSON or TXT file")
    im.add_argument("input", type=str, help="File to import")
    im.add_argument("--file", "-f", type=str, help="Path to vault file")
    im.add_argument("--dry-run", action="store_true", help="Only preview the parsed entries")
    im.add_argument("--yes", "-y", action="store_true", help="Do not ask for confirmation")
    im.set_defaults(func=cmd_import)

    ex = sub.add_parser("export", help="Export vault entries to a JSON file")
    ex.add_argument("--file", "-f", type=str, help="Path to vault file")
    ex.add_argument("--output", "-o", type=str, help="Export output path")
    ex.set_defaults(func=cmd_export)

    v = sub.add_parser("vault", help="Vault operations")
    vsub = v.add_subparsers(dest="vcmd", required=True)

    vc_create = vsub.add_parser("create", help="Create a new vault")
    vc_create.add_argument("--file", "-f", type=str, help="Path to vault file")
    vc_create.set_defaults(func=cmd_vault_create)

    vc_add = vsub.add_parser("add", help="Add an entry to the vault")
    vc_add.add_argument("--file", "-f", type=str, help="Path to vault file")
    vc_add.add_argument("--title", type=str, help="Entry title (site)")
    vc_add.add_argument("--username", type=str, help="Username")
    vc_add.add_argument("--password", type=str, help="Password (avoid passing via CLI in public shells)")
    vc_add.add_argument("--url", type=str, help="Website URL")
    vc_add.add_argument("--category", type=str, default="Personal", help="Category")
    vc_add.add_argument("--notes", type=str, help="Optional notes")
    vc_add.set_defaults(func=cmd_vault_add)

    vc_list = vsub.add_parser("list", help="List entries in the vault")
    vc_list.add_argument("--file", "-f", type=str, help="Path to vault file")
    vc_list.set_defaults(func=cmd_vault_list)

    vc_rm = vsub.add_parser("remove", help="Remove entry by id")
    vc_rm.add_argument("--file", "-f", type=str, help="Path to vault file")
    vc_rm.add_argument("id", type=str, help="Entry id (shown in list)")
    vc_rm.set_defaults(func=cmd_vault_remove)

    vc_chpw = vsub.add_parser("changepw", help="Change the vault master password")
    vc_chpw.add_argument("--file", "-f", type=str, help="Path to vault file")
    vc_chpw.set_defaults(func=cmd_vault_changepw)

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)
    cfg = load_config(args.config)
    try:
        args.func(args, cfg)
    except (VaultSenseError, OSError) as e:
        logger.debug("command failed", exc_info=True)
        print(f"[red]Error: {escape(str(e))}[/red]")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
