#!/usr/bin/env python3
"""
Cardano wallet transactions - demo

Sends lovelace from a single-key wallet, waits for it to land, then sends
from a multisig script address (fee paid by a second multisig address).

Usage:
    python main.py

Configure provider, keys and addresses in config/settings.py.
"""

import asyncio
import logging
import sys

from config import settings
from cardano_tx import CardanoTxError, KeySigner
from cardano_tx.confirm import submit_tx_and_wait
from cardano_tx.helpers import create_multisig_tx, create_tx
from cardano_tx.metadata import split_string
from cardano_tx.providers import create_provider

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


async def run() -> bool:
    print("=" * 60)
    print("Cardano wallet transactions - demo")
    print("=" * 60)
    print()
    print(f"Provider: {settings.provider_name}")
    print()

    if len(settings.signing_keys) < 4:
        print("❌ Set at least four signing keys in config/settings.py")
        return False

    wallets = [KeySigner.from_cbor_hex(k) for k in settings.signing_keys]
    provider = create_provider(settings.provider_name, settings)
    amount = settings.min_utxo_value
    tx_options = dict(
        potential_fee=settings.potential_fee,
        min_utxo_value=settings.min_utxo_value,
        max_inputs=settings.max_inputs,
        ttl_increment=settings.ttl_increment,
    )
    wait_options = dict(
        retry_count=settings.confirmation_retry_count,
        retry_wait=settings.confirmation_retry_wait,
    )

    try:
        print("[1/2] Single-signer transaction...")
        signed, tx_hash = await create_tx(
            provider, wallets[0], settings.receiver_address, amount,
            metadata={"0": {"type": "single"}}, **tx_options,
        )
        balance = await submit_tx_and_wait(
            provider, signed, tx_hash, settings.receiver_address, amount_increment=amount, **wait_options,
        )
        print(f"✅ {tx_hash} confirmed, receiver balance {balance:,}")

        print()
        print("[2/2] Multisig transaction...")
        signers, fee_signers = wallets[:3], wallets[3:]
        metadata = {
            "0": {"type": "multi"},
            "1": {"type": "demo", "senderAddr": split_string(wallets[0].address().encode(), 40)},
        }
        signed, tx_hash = await create_multisig_tx(
            provider, signers, fee_signers, settings.receiver_multisig_address, amount,
            metadata=metadata, **tx_options,
        )
        balance = await submit_tx_and_wait(
            provider, signed, tx_hash, settings.receiver_multisig_address, amount_increment=amount, **wait_options,
        )
        print(f"✅ {tx_hash} confirmed, receiver balance {balance:,}")
        return True

    except CardanoTxError as e:
        print(f"❌ {e}")
        logger.debug("Transaction failed", exc_info=True)
        return False

    finally:
        await provider.close()


async def main():
    """Main entry point"""
    try:
        success = await run()
        sys.exit(0 if success else 1)
    except KeyboardInterrupt:
        print("\nInterrupted by user")
        sys.exit(130)
    except Exception:
        logger.exception("Unexpected error")
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
