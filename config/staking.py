"""
Interest constants are static and MUST NOT be overridden by environment.
Positions opened under one configuration must pay out identically later.
"""

SECONDS_PER_DAY = 86_400
DAYS_PER_YEAR = 365
BASIS_POINTS = 10_000  # 100%
