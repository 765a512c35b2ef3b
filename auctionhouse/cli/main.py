"""
AuctionHouse CLI - Command Line Interface for AuctionHouse

Main entry point for all CLI commands.
"""

import json
import logging
from pathlib import Path

import click

from auctionhouse import __version__
from auctionhouse.core.config import load_config
from auctionhouse.core.errors import AuctionError
from auctionhouse.crypto import ZERO_ADDRESS
from auctionhouse.utils.logger import AuctionHouseLogger, get_logger, setup_logging
from auctionhouse.utils.validation import is_zero_address

ETHER = 10**18

logger = get_logger("cli")


def deploy_environment(
    chain,
    deployer: str,
    max_page_size: int,
    fee_recipient: str = ZERO_ADDRESS,
) -> dict:
    """
    Deploy the mock collaborators, the auction template and the factory.

    Args:
        chain: Chain to deploy on
        deployer: Account that deploys everything and owns the factory
        max_page_size: Page size limit for the factory
        fee_recipient: Fee destination for new auctions (zero = retained)

    Returns:
        Mapping of contract name to deployed contract
    """
    from auctionhouse.core.auction import Auction
    from auctionhouse.core.factory import AuctionFactory
    from auctionhouse.mocks import MockERC20, MockNFT, MockV3Aggregator

    contracts = {
        "nft": chain.deploy(MockNFT(), deployer=deployer),
        "token": chain.deploy(MockERC20(), deployer=deployer),
        "price_feed": chain.deploy(MockV3Aggregator(8, 2000 * 10**8), deployer=deployer),
        "auction_template": chain.deploy(Auction(), deployer=deployer),
        "factory": chain.deploy(AuctionFactory(max_page_size=max_page_size), deployer=deployer),
    }
    contracts["factory"].initialize(contracts["auction_template"].address, sender=deployer)
    if not is_zero_address(fee_recipient):
        contracts["factory"].set_fee_recipient(fee_recipient, sender=deployer)
    return contracts


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--config", "config_path", default=None, help="JSON config file (defaults to AUCTIONHOUSE_* env)")
@click.version_option(version=__version__)
@click.pass_context
def cli(ctx, debug, config_path):
    """AuctionHouse - English auctions with a deploying factory"""
    try:
        cfg = load_config(config_path)
    except AuctionError as e:
        raise click.ClickException(f"{e.reason.value}: {e.message}")

    AuctionHouseLogger.reset()
    setup_logging(
        level=logging.DEBUG if debug else cfg.logging_level,
        log_dir=str(cfg.log_dir),
        log_to_file=cfg.log_to_file,
        # --debug overrides every subsystem
        subsystem_levels=None if debug else cfg.subsystem_logging_levels,
    )
    logger.debug(f"Configuration loaded from {config_path or 'environment'}")

    ctx.ensure_object(dict)
    ctx.obj["config"] = cfg


# =============================================================================
# Demo Command
# =============================================================================


@cli.command("demo")
@click.option("--duration", default=None, type=int, help="Auction duration in seconds")
@click.option("--fee-bps", default=None, type=int, help="Fee in basis points")
@click.pass_context
def demo(ctx, duration, fee_bps):
    """Run an end-to-end auction: two bids, a refund and settlement"""
    from auctionhouse.core.chain import Chain

    cfg = ctx.obj["config"]
    duration = cfg.default_duration if duration is None else duration
    fee_bps = cfg.default_fee_basis_points if fee_bps is None else fee_bps

    click.echo("=" * 60)
    click.echo("  AUCTIONHOUSE - DEMO")
    click.echo("=" * 60)
    click.echo()

    try:
        # Setup
        click.echo("📦 Deploying contracts...")
        chain = Chain()
        seller = chain.create_account()
        alice = chain.create_account(balance=10 * ETHER)
        bob = chain.create_account(balance=10 * ETHER)

        contracts = deploy_environment(chain, seller, cfg.max_page_size, cfg.fee_recipient)
        nft = contracts["nft"]
        token = contracts["token"]
        factory = contracts["factory"]
        for name, contract in contracts.items():
            click.echo(f"  ✓ {name}: {contract.address}")
        click.echo()

        # Listing
        click.echo("🖼️  Seller lists an NFT...")
        asset_id = nft.mint(seller, "ipfs://auctionhouse-demo", sender=seller)
        nft.approve(factory.address, asset_id, sender=seller)
        auction_address = factory.create_auction(
            nft.address,
            asset_id,
            duration,
            token.address,
            contracts["price_feed"].address,
            fee_bps,
            sender=seller,
        )
        auction = chain.at(auction_address)
        click.echo(f"  ✓ Auction deployed: {auction_address}")
        click.echo(f"  ✓ Custody: {auction.has_custody()}")
        click.echo()

        # Bidding
        click.echo("💸 Alice bids 1 ETH...")
        auction.bid_native(sender=alice, value=ETHER)
        click.echo(f"  ✓ Worth ${auction.get_bid_usd_value(ETHER, False)}")
        click.echo()

        click.echo("🪙 Bob outbids with 2 tokens...")
        token.mint(bob, 5 * ETHER, sender=bob)
        token.approve(auction_address, 2 * ETHER, sender=bob)
        auction.bid_fungible(2 * ETHER, sender=bob)
        click.echo(f"  ✓ Alice refunded: {chain.balance_of(alice)} wei")
        click.echo()

        # Settlement
        click.echo("⚖️  Settling auction...")
        chain.advance_time(duration)
        auction.end_auction(sender=alice)
        click.echo(f"  ✓ NFT owner: {nft.owner_of(asset_id)}")
        click.echo(f"  ✓ Seller proceeds: {token.balance_of(seller)} tokens")
        click.echo()
    except AuctionError as e:
        click.echo(f"❌ Demo failed: {e.reason.value}: {e.message}")
        ctx.exit(1)

    # Stats
    click.echo("📊 Final Statistics:")
    click.echo(f"  Auction: {auction.stats()}")
    click.echo(f"  Factory: {factory.stats()}")
    click.echo(f"  Chain: {chain.stats()}")
    click.echo()
    click.echo("✅ Demo complete!")


# =============================================================================
# Deploy Command
# =============================================================================


@cli.command("deploy")
@click.option("--output", default="deployments.json", help="Where to write contract addresses")
@click.pass_context
def deploy(ctx, output):
    """Deploy mocks, template and factory on a fresh chain"""
    from auctionhouse.core.chain import Chain

    cfg = ctx.obj["config"]
    chain = Chain()
    deployer = chain.create_account()

    try:
        contracts = deploy_environment(chain, deployer, cfg.max_page_size, cfg.fee_recipient)
    except AuctionError as e:
        click.echo(f"❌ Deployment failed: {e.reason.value}: {e.message}")
        ctx.exit(1)

    deployment = {
        "deployer": deployer,
        "timestamp": chain.now,
        "contracts": {name: contract.address for name, contract in contracts.items()},
    }

    output_path = Path(output)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps(deployment, indent=2))

    click.echo("Deployment")
    click.echo("-" * 40)
    for name, address in deployment["contracts"].items():
        click.echo(f"  {name}: {address}")
    click.echo(f"  Saved to: {output_path}")


# =============================================================================
# Quote Command
# =============================================================================


@cli.command("quote")
@click.argument("amount", type=int)
@click.option("--fungible", is_flag=True, help="Quote a token bid instead of a native bid")
@click.option("--price", default=2000 * 10**8, type=int, help="Oracle answer")
@click.option("--decimals", default=8, type=click.IntRange(min=0), help="Oracle decimals")
@click.pass_context
def quote(ctx, amount, fungible, price, decimals):
    """USD value of a bid of AMOUNT base units"""
    from auctionhouse.core.auction import quote_usd

    try:
        usd = quote_usd(amount, price, decimals, fungible)
    except AuctionError as e:
        click.echo(f"❌ {e.reason.value}: {e.message}")
        ctx.exit(1)

    currency = "token" if fungible else "native"
    click.echo(f"{amount} ({currency}) = ${usd}")


@cli.command("config")
@click.pass_context
def show_config(ctx):
    """Show the effective configuration"""
    click.echo(ctx.obj["config"].model_dump_json(indent=2))


if __name__ == "__main__":
    cli()
