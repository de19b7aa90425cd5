"""
Main entry point for the round-trip arbitrage bot.
"""
import asyncio
import logging
import sys
from typing import Optional

from .bundle_submitter import BundleSubmitter
from .config import get_private_key, load_config
from .errors import ConfigError
from .evaluator import OpportunityEvaluator
from .jupiter_client import JupiterClient
from .lookup_tables import LookupTableResolver
from .signer import KeypairSigner, load_keypair
from .solana_client import SolanaClient
from .transaction_assembler import TransactionAssembler

logger = logging.getLogger(__name__)


def setup_logging(level: int = logging.INFO, log_file: Optional[str] = 'arbitrage_bot.log'):
    """Log to stdout and, unless disabled, to a file."""
    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers
    )


async def main(mode: Optional[str] = None, max_cycles: Optional[int] = None):
    """Main function."""
    logger.info("Starting round-trip arbitrage bot")

    config = load_config()
    if mode:
        config.mode = mode.lower()
        config.validate()

    # Credential failures are the only fatal startup error
    try:
        signer = KeypairSigner(load_keypair(get_private_key()))
    except ConfigError as e:
        logger.error(str(e))
        return
    logger.info(f"payer: {signer.pubkey()}")

    jupiter = JupiterClient(
        config.jupiter_api_url,
        api_key=config.jupiter_api_key,
        timeout=config.request_timeout
    )
    solana = SolanaClient(config.rpc_url, timeout=config.request_timeout)
    submitter = BundleSubmitter(config.jito_rpc_url, timeout=config.request_timeout)
    assembler = TransactionAssembler(
        LookupTableResolver(solana),
        tip_account=config.tip_account,
        compute_unit_price_micro_lamports=config.compute_unit_price_micro_lamports
    )
    evaluator = OpportunityEvaluator(config, jupiter, solana, assembler, submitter, signer)

    if evaluator.submit_enabled:
        logger.warning("=" * 60)
        logger.warning("LIVE MODE ENABLED - BUNDLES WILL BE SUBMITTED!")
        logger.warning("=" * 60)
    else:
        logger.info("Mode: SCAN (bundles are built and signed but never submitted)")

    try:
        await evaluator.run_forever(max_cycles=max_cycles)
    finally:
        await jupiter.close()
        await solana.close()
        await submitter.close()
        logger.info("Bot stopped")


if __name__ == '__main__':
    setup_logging()
    asyncio.run(main())
