"""Invoice settlement configuration constants.

Keep this file aligned with the on-chain program constants (`InvoiceError`
limits and the lottery risk ceilings).
"""

# Integer widths
U64_MAX = (1 << 64) - 1
U128_MAX = (1 << 128) - 1
I64_MIN = -(1 << 63)
I64_MAX = (1 << 63) - 1

# Invoice limits
MAX_INVOICE_ID_LEN = 32
MAX_MEMO_LEN = 256
MAX_MILESTONES = 10
MAX_TX_REFERENCE_LEN = 88  # base58 signature length

# Profile limits
MAX_NAME_LEN = 64
MAX_EMAIL_LEN = 128
MAX_BUSINESS_NAME_LEN = 128

# Basis points
BPS_DIVISOR = 10_000

# Lottery risk ceilings (checked at pool creation only)
MAX_HOUSE_EDGE_BPS = 1_000  # 10%
MAX_POOL_RESERVE_BPS = 5_000  # 50%
MAX_WIN_PCT_BPS = 1_000  # 10% of non-reserved liquidity

# Lottery entry
MAX_WIN_PROBABILITY_BPS = 9_500  # 95% cap
LOTTERY_COOLDOWN_SECONDS = 300  # invoice must be 5 minutes old
RANDOM_VALUE_LEN = 32

# Address derivation seeds
SEED_INVOICE = b"invoice"
SEED_ESCROW = b"escrow"
SEED_LOTTERY_POOL = b"lottery_pool"
SEED_LOTTERY_ENTRY = b"lottery_entry"
SEED_PROFILE = b"profile"

# Asset ids are 32-byte mint addresses
ASSET_ID_LEN = 32

# Default asset (native token)
NATIVE_ASSET = bytes(32)
