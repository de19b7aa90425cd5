#!/usr/bin/env python3
"""
Create a new Solana wallet for the bot.
IMPORTANT: Save the private key securely!
"""

import base58
from solders.keypair import Keypair

keypair = Keypair()

# 64-byte secret in base58, the format WALLET_PRIVATE_KEY expects
private_key_base58 = base58.b58encode(bytes(keypair)).decode('utf-8')
public_key = str(keypair.pubkey())

print("=" * 60)
print("NEW WALLET CREATED")
print("=" * 60)
print("\nPayer address (fee payer and tip source):")
print(public_key)
print("\nPrivate Key (base58):")
print(private_key_base58)
print("\n" + "=" * 60)
print("IMPORTANT:")
print("1. Save the private key in a secure place!")
print("2. Add it to .env as WALLET_PRIVATE_KEY")
print("3. Fund the wallet with SOL for fees, tips and the WSOL trade amount")
print("4. NEVER publish the private key!")
print("=" * 60)
