"""
Well-known addresses, endpoints and ledger limits.
"""

# Token mints
WSOL_MINT = "So11111111111111111111111111111111111111112"
USDC_MINT = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"

# Jito tip account receiving the block-builder tip
JITO_TIP_ACCOUNT = "Cw8CFyM9FkoMi7K7Crf6HNQqf4uEMzpKw6QNghXLvLkY"

# Default endpoints
DEFAULT_RPC_URL = "https://solana-rpc.publicnode.com"
DEFAULT_JUPITER_API_URL = "https://api.jup.ag/swap/v1"
DEFAULT_JITO_RPC_URL = "https://frankfurt.mainnet.block-engine.jito.wtf/api/v1/bundles"

# Ledger limits
BASE_FEE_LAMPORTS = 5_000  # per signature
MAX_TRANSACTION_SIZE = 1232  # raw bytes, one packet
MAX_BUNDLE_SIZE = 5  # transactions per Jito bundle
