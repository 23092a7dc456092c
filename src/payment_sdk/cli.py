"""payment-sdk CLI - submit payments from the command line.

Usage:
    payment-sdk pay --amount 10 --currency USD --recipient r1 [--retries N] [--json]
    payment-sdk init --host <url> [--api-key KEY]
    payment-sdk clear-key [--json]
"""

from __future__ import annotations

import json
import sys
from decimal import Decimal, InvalidOperation
from typing import Any, NoReturn

import click

from payment_sdk.config import init_config, load_config, validate_config
from payment_sdk.credential_store import get_credential_store
from payment_sdk.errors import PaymentError
from payment_sdk.exit_codes import SUCCESS, exit_code_for
from payment_sdk.log_config import configure_logging
from payment_sdk.network.transport import HTTPTransport, MockTransport
from payment_sdk.payments.base import PaymentConfig
from payment_sdk.payments.payment import Payment

# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------


def format_response(
    status: str,
    data: dict[str, Any] | None = None,
    error: dict[str, Any] | None = None,
    json_mode: bool = False,
) -> str:
    """Build the response envelope (JSON) or a one-line summary."""
    if json_mode:
        envelope: dict[str, Any] = {"status": status, "data": data, "error": error}
        return json.dumps(envelope, indent=2, sort_keys=False)
    if status == "error" and error:
        return f"Error [{error.get('code', 'UNKNOWN')}]: {error.get('message', '')}"
    return str((data or {}).get("message", status))


def _succeed(data: dict[str, Any], json_mode: bool) -> NoReturn:
    click.echo(format_response("success", data=data, json_mode=json_mode))
    sys.exit(SUCCESS)


def _fail(code: str, message: str, json_mode: bool) -> NoReturn:
    """Print a structured error and exit with the code mapped from *code*."""
    click.echo(format_response("error", error={"code": code, "message": message}, json_mode=json_mode))
    sys.exit(exit_code_for(code))


def _make_payment(
    ctx: click.Context,
    json_mode: bool,
    *,
    failure_rate: float = 0.5,
    seed: int | None = None,
) -> Payment:
    """Build a Payment from the resolved config, validating it first."""
    try:
        config = load_config(
            host=ctx.obj["host"],
            api_key=ctx.obj["api_key"],
            config_path=ctx.obj["config_path"],
        )
    except ValueError as exc:
        _fail("VALIDATION_ERROR", f"Configuration error: {exc}", json_mode)
    valid, err = validate_config(config)
    if not valid:
        _fail("VALIDATION_ERROR", f"Configuration error: {err}", json_mode)
    transport = HTTPTransport(
        timeout=float(config["timeout"]),  # type: ignore[arg-type]
        mock=MockTransport(failure_rate=failure_rate, seed=seed),
    )
    return Payment.from_config(
        config,
        transport=transport,
        credential_store=get_credential_store(),
    )


# ------------------------------------------------------------------
# CLI group
# ------------------------------------------------------------------


@click.group()
@click.option("--host", envvar="PAYMENT_SDK_HOST", default=None, help="Payment service URL.")
@click.option("--api-key", envvar="PAYMENT_SDK_API_KEY", default=None, help="API key (stored encrypted).")
@click.option("--config", "config_path", default=None, help="Path to config.yaml.")
@click.option("--log-dir", envvar="PAYMENT_SDK_LOG_DIR", default=None, help="Write rotating logs here.")
@click.version_option(package_name="payment-sdk")
@click.pass_context
def cli(
    ctx: click.Context,
    host: str | None,
    api_key: str | None,
    config_path: str | None,
    log_dir: str | None,
) -> None:
    """Submit payments to the payment service."""
    ctx.ensure_object(dict)
    ctx.obj["host"] = host
    ctx.obj["api_key"] = api_key
    ctx.obj["config_path"] = config_path
    if log_dir:
        configure_logging(log_dir)


# ------------------------------------------------------------------
# pay
# ------------------------------------------------------------------


@cli.command()
@click.option("--amount", required=True, help="Amount to charge (e.g. 10.50).")
@click.option("--currency", required=True, help="Currency code (e.g. USD).")
@click.option("--recipient", required=True, help="Recipient identifier.")
@click.option("--retries", default=0, type=click.IntRange(min=0), show_default=True,
              help="Extra attempts after a failure.")
@click.option("--failure-rate", default=0.5, type=click.FloatRange(0.0, 1.0), show_default=True,
              help="Simulated failure rate against the mock host.")
@click.option("--seed", default=None, type=int, help="Seed for simulated failures.")
@click.option("--json", "json_mode", is_flag=True, default=False, help="Output as JSON.")
@click.pass_context
def pay(
    ctx: click.Context,
    amount: str,
    currency: str,
    recipient: str,
    retries: int,
    failure_rate: float,
    seed: int | None,
    json_mode: bool,
) -> None:
    """Submit a payment."""
    try:
        value = Decimal(amount)
    except InvalidOperation:
        _fail("VALIDATION_ERROR", f"Invalid amount: {amount!r}", json_mode)
    if not value.is_finite() or value <= 0:
        _fail("VALIDATION_ERROR", f"Amount must be positive: {amount!r}", json_mode)

    payment = _make_payment(ctx, json_mode, failure_rate=failure_rate, seed=seed)
    config = PaymentConfig(
        amount=value,
        currency=currency.upper(),
        recipient=recipient,
        retry_count=retries,
    )

    try:
        response = payment.make_sync(config)
    except PaymentError as exc:
        _fail(exc.code, exc.message, json_mode)
    except Exception as exc:
        _fail("UNKNOWN", str(exc), json_mode)

    data = {
        **response.to_dict(),
        "amount": str(config.amount),
        "currency": config.currency,
        "recipient": config.recipient,
        "message": f"Payment successful: transaction {response.transaction_id}",
    }
    _succeed(data, json_mode)


# ------------------------------------------------------------------
# init / clear-key
# ------------------------------------------------------------------


@cli.command()
@click.option("--host", "init_host", prompt="Payment service URL", help="Payment service URL.")
@click.option("--api-key", "init_api_key", default=None, help="API key to store encrypted.")
@click.pass_context
def init(ctx: click.Context, init_host: str, init_api_key: str | None) -> None:
    """Initialize the configuration file (~/.payment-sdk/config.yaml)."""
    path = init_config(init_host, ctx.obj["config_path"])
    click.echo(f"Configuration saved to {path}")
    if init_api_key:
        get_credential_store().save(init_api_key)
        click.echo("API key stored.")


@cli.command("clear-key")
@click.option("--json", "json_mode", is_flag=True, default=False, help="Output as JSON.")
def clear_key(json_mode: bool) -> None:
    """Delete the stored API key."""
    Payment(credential_store=get_credential_store(), transport=MockTransport()).clear_api_key()
    data = {"action": "clear_key", "message": "API key cleared."}
    _succeed(data, json_mode)


# ------------------------------------------------------------------
# Entry point
# ------------------------------------------------------------------

if __name__ == "__main__":
    cli()
