"""
Fundpool CLI - Command Line Interface for the campaign escrow pool

Operator commands for inspecting configuration and running demo scenarios
against an in-memory pool.
"""

import json
import logging

import click

from fundpool.utils.logger import setup_logging


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--config", "config_path", default=None, help="JSON config file")
@click.option("--env-file", default=None, help=".env file with FUNDPOOL_* overrides")
@click.option("--log-file", is_flag=True, help="Also write logs to <log_dir>/fundpool.log")
@click.version_option(version="0.1.0")
@click.pass_context
def cli(ctx, debug, config_path, env_file, log_file):
    """Fundpool - Campaign escrow ledger"""
    from fundpool.core.config import load_config

    config = load_config(config_path, env_file=env_file)
    level = logging.DEBUG if debug else getattr(logging, config.log_level.upper(), logging.INFO)
    setup_logging(level=level, log_dir=str(config.log_dir), log_to_file=log_file, force=True)

    ctx.ensure_object(dict)
    ctx.obj["config"] = config


# =============================================================================
# Config Commands
# =============================================================================

@cli.group()
def config():
    """Configuration commands"""
    pass


@config.command("show")
@click.pass_context
def config_show(ctx):
    """Print the effective configuration"""
    click.echo(json.dumps(ctx.obj["config"].model_dump(mode="json"), indent=2))


# =============================================================================
# Demo Command
# =============================================================================

DEMO_AUTHORITY = "ST2AUTHORITY"
DEMO_RECIPIENT = "ST3RECIPIENT"
DEMO_DONOR = "ST4DONOR"


def _check(result, label):
    value, err = result
    if err is not None:
        raise click.ClickException(f"{label} failed: {err.name} ({int(err)})")
    return value


@cli.command("demo")
@click.option(
    "--scenario",
    type=click.Choice(["basic", "emergency"]),
    default="basic",
    help="Demo scenario to run",
)
@click.pass_context
def demo(ctx, scenario):
    """Run a scripted escrow scenario"""
    from fundpool.core.collaborators import BlockClock, RecordingTransferGateway
    from fundpool.core.pool import FundingPool

    config = ctx.obj["config"]
    if config.authority_principal is None:
        config = config.model_copy(update={"authority_principal": DEMO_AUTHORITY})

    clock = BlockClock()
    gateway = RecordingTransferGateway()
    pool = FundingPool(config, clock=clock, gateway=gateway)
    admin = pool.administrator

    click.echo("=" * 60)
    click.echo(f"  FUNDPOOL DEMO - {scenario}")
    click.echo("=" * 60)

    campaign_id = _check(
        pool.create_campaign(DEMO_DONOR, "Community Well", "Water for the village", 1000, DEMO_RECIPIENT),
        "create campaign",
    )
    click.echo(f"  Created campaign {campaign_id} for {DEMO_RECIPIENT}")

    clock.advance()
    balance = _check(pool.deposit(DEMO_DONOR, campaign_id, 1000), "deposit")
    click.echo(f"  Deposited 1000, balance {balance}, total funds {pool.get_total_funds()}")

    clock.advance()
    if scenario == "basic":
        _check(pool.approve_release(admin, campaign_id, 1, 1000), "approve")
        click.echo("  Approved proposal 1 for 1000")
        net = _check(pool.release(DEMO_DONOR, campaign_id, 1), "release")
        receipt = pool.releases[-1]
        click.echo(f"  Released: fee {receipt.fee} -> {receipt.fee_recipient}, net {net} -> {receipt.recipient}")
    else:
        _, err = pool.emergency_withdraw(admin, campaign_id, 5000)
        click.echo(f"  Emergency withdraw of 5000 rejected: {err.name}")
        balance = _check(pool.emergency_withdraw(admin, campaign_id, 400), "emergency withdraw")
        click.echo(f"  Emergency withdrew 400 to {admin}, balance {balance}")

    campaign = pool.get_campaign(campaign_id)
    click.echo()
    click.echo(f"  Campaign {campaign_id}: balance={campaign.balance} locked={campaign.locked}")
    click.echo(f"  Total funds: {pool.get_total_funds()}")
    click.echo("  Transfers:")
    for t in gateway.transfers:
        click.echo(f"    {t.amount:>6}  {t.sender} -> {t.recipient}")
    click.echo(f"  Stats: {pool.stats()}")
    click.echo()
    click.echo("Demo complete!")


if __name__ == "__main__":
    cli()
