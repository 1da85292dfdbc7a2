"""Business constants for the report aggregator.

These thresholds are fixed business rules, not per-store settings.
"""

# Labels for rows whose related record is missing
UNKNOWN = "Unknown"
NO_SKU = "N/A"

# Customer segments
VIP = "VIP"
REGULAR = "Regular"
NEW = "New"
INACTIVE = "Inactive"

INACTIVE_AFTER_DAYS = 90
VIP_MIN_VALUE = 100_000.0
VIP_MIN_PURCHASES = 10
REGULAR_MIN_PURCHASES = 2
REGULAR_MIN_VALUE = 10_000.0

# Inventory movement
MOVEMENT_WINDOW_DAYS = 90
FAST_MIN_TIMES_SOLD = 3
FAST_MIN_QUANTITY = 10
SLOW_AFTER_DAYS = 60
MOVEMENT_LIST_SIZE = 10

# Stock valuation estimates: silver at 1% of the gold rate, any other
# metal (Diamond) at ten times its making charge
SILVER_RATE_DIVISOR = 100
OTHER_METAL_MAKING_MULTIPLIER = 10

# Profit margin: cost price is not tracked, estimated at 80% of revenue
ESTIMATED_COST_RATIO = 0.8

PERFORMANCE_WINDOW_DAYS = 30
TOP_SELLING_LIMIT = 10

METAL_TYPES = ["Gold", "Silver", "Diamond"]
