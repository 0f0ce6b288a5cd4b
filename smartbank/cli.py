"""
Console front end for SmartBank.

Commands:
    * shell        - interactive login and banking menu over demo accounts
    * set-setting  - upsert a value in the settings database
    * get-setting  - read a value from the settings database
    * generate-key - print a fresh base64 AES-256 key for SMARTBANK_ENCRYPTION_KEY
    * save-pin     - encrypt a PIN and store it in the settings database
    * load-pin     - load and decrypt the stored PIN

Accounts live in memory only and are reset every time the shell starts.
"""

from typing import Optional

import typer

from .config import get_config
from .currency import Currency
from .encryption import AuthenticatedCipher, DecryptionError, EncryptionError, KeyManager
from .ledger import AccountRepository
from .logging_config import setup_logging
from .pins import PinManager
from .session import BankingSession, SessionResult
from .storage import SQLiteSettingsStore

app = typer.Typer(help="SmartBank console: in-memory ledger and encrypted settings.")

MENU = (
    "1) Deposit  2) Withdraw  3) Transfer  4) History  "
    "5) Manage account  6) Logout  0) Quit"
)


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(None, help="Override SMARTBANK_LOG_LEVEL."),
) -> None:
    """Configure logging before any command runs."""

    settings = get_config()
    setup_logging(level=log_level or settings.log_level, log_format=settings.log_format)


def _echo_result(result: SessionResult) -> None:
    typer.secho(result.message, fg=typer.colors.GREEN if result.ok else typer.colors.RED)


def build_repository() -> AccountRepository:
    settings = get_config()
    repository = AccountRepository(currency=Currency.from_code(settings.currency))
    if settings.seed_demo_accounts:
        repository.seed_demo_accounts()
    return repository


def build_key_manager() -> KeyManager:
    settings = get_config()
    if settings.encryption_key:
        return KeyManager.from_encoded(settings.encryption_key)
    typer.secho(
        "SMARTBANK_ENCRYPTION_KEY is not set; using an ephemeral key for this run.",
        fg=typer.colors.YELLOW, err=True,
    )
    return KeyManager().initialize()


def _run_menu(session: BankingSession) -> bool:
    """Serve one logged-in user; returns False when the user quits."""

    while session.logged_in:
        typer.echo("")
        typer.echo(f"Welcome, {session.account.holder_name}. {session.balance_text()}")
        typer.echo(MENU)
        choice = typer.prompt("Choice").strip()

        if choice == "1":
            _echo_result(session.deposit(typer.prompt("Amount")))
        elif choice == "2":
            _echo_result(session.withdraw(typer.prompt("Amount")))
        elif choice == "3":
            amount = typer.prompt("Amount")
            target = typer.prompt("Target Account Number")
            _echo_result(session.transfer(amount, target))
        elif choice == "4":
            typer.echo(session.history_report())
        elif choice == "5":
            new_name = typer.prompt("New holder name (blank to keep)", default="", show_default=False)
            new_pin = typer.prompt("New PIN (blank to keep)", default="", show_default=False,
                                   hide_input=True)
            active = typer.confirm("Account active?", default=session.account.active)
            _echo_result(session.update_account(new_name, new_pin, active))
        elif choice == "6":
            _echo_result(session.logout())
        elif choice == "0":
            return False
        else:
            typer.secho("Unknown option.", fg=typer.colors.RED)
    return True


@app.command()
def shell() -> None:
    """Start an interactive banking session."""

    session = BankingSession(build_repository())
    typer.echo("SmartBank System")
    while True:
        account_id = typer.prompt("Account Number (blank to quit)", default="", show_default=False)
        if not account_id.strip():
            break
        pin = typer.prompt("PIN", hide_input=True)
        result = session.login(account_id, pin)
        _echo_result(result)
        if result.ok and not _run_menu(session):
            break
    typer.echo("Goodbye.")


@app.command("set-setting")
def set_setting(key: str, value: str) -> None:
    """Save KEY=VALUE in the settings database."""

    with SQLiteSettingsStore(get_config().database_path) as store:
        store.save_setting(key, value)
    typer.echo(f"Saved {key}")


@app.command("get-setting")
def get_setting(key: str) -> None:
    """Print the value stored under KEY."""

    with SQLiteSettingsStore(get_config().database_path) as store:
        value = store.load_setting(key)
    if value is None:
        typer.secho(f"No setting named {key}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    typer.echo(value)


@app.command("generate-key")
def generate_key() -> None:
    """Print a new base64 AES-256 key."""

    typer.echo(KeyManager().initialize().export_key())


@app.command("save-pin")
def save_pin(pin: str = typer.Option(..., prompt=True, hide_input=True)) -> None:
    """Encrypt PIN and store it in the settings database."""

    try:
        cipher = AuthenticatedCipher(build_key_manager())
    except EncryptionError as error:
        typer.secho(str(error), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    with SQLiteSettingsStore(get_config().database_path) as store:
        PinManager(store, cipher).save_pin(pin)
    typer.echo("PIN saved")


@app.command("load-pin")
def load_pin() -> None:
    """Decrypt and print the stored PIN."""

    try:
        cipher = AuthenticatedCipher(build_key_manager())
        with SQLiteSettingsStore(get_config().database_path) as store:
            pin = PinManager(store, cipher).load_pin()
    except (EncryptionError, DecryptionError) as error:
        typer.secho(f"Could not load PIN: {error}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    if pin is None:
        typer.secho("No PIN stored", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    typer.echo(pin)


if __name__ == "__main__":
    app()
