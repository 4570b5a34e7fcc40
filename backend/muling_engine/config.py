from datetime import timedelta


class Settings:
    # Cycle detection
    CYCLE_MIN_LENGTH: int = 3
    CYCLE_MAX_LENGTH: int = 5
    CYCLE_AMOUNT_DECAY_THRESHOLD: float = 0.5  # min ratio between consecutive hops
    CYCLE_TEMPORAL_WINDOW: timedelta = timedelta(days=7)
    CYCLE_LARGE_SCC_WARNING: int = 100  # diagnostic only, search is not pruned

    # Smurfing configuration
    SMURF_WINDOW: timedelta = timedelta(hours=72)
    SMURF_MIN_COUNTERPARTIES: int = 10
    SMURF_UNWINDOWED_HOURS: int = -1

    # Legitimate collector / payroll heuristics
    LEGIT_DIRECTION_RATIO: float = 0.05
    LEGIT_AMOUNT_CV_THRESHOLD: float = 0.1
    LEGIT_MIN_SAMPLES: int = 5
    LEGIT_FAN_OUT_MIN_SAMPLES: int = 20  # strictly more than this many payouts

    # Shell / layering configuration
    SHELL_MAX_TRANSACTIONS: int = 3
    SHELL_MIN_CHAIN_LENGTH: int = 3
    SHELL_MAX_CHAIN_LENGTH: int = 8

    # Scoring weights
    SCORE_CYCLE_BY_LENGTH = {3: 45.0, 4: 40.0, 5: 35.0}
    SCORE_CYCLE_RING_BASE: float = 30.0
    SCORE_CYCLE_RING_TRIANGLE_BONUS: float = 20.0
    SCORE_CYCLE_RING_OTHER_BONUS: float = 10.0

    SCORE_SMURF_HUB: float = 35.0
    SCORE_SMURF_WINDOWED_HUB: float = 15.0
    SCORE_SMURF_MEMBER: float = 15.0
    RISK_SMURF_WINDOWED: float = 85.0
    RISK_SMURF_UNWINDOWED: float = 70.0

    SCORE_SHELL_INTERMEDIARY: float = 30.0
    SCORE_SHELL_ENDPOINT: float = 20.0
    RISK_SHELL_NETWORK: float = 75.0

    SCORE_HIGH_VELOCITY: float = 10.0
    HIGH_VELOCITY_TX_PER_HOUR: float = 2.0

    SCORE_AMOUNT_ANOMALY: float = 5.0
    ROUND_AMOUNT_UNIT: float = 1000.0
    JUST_UNDER_RANGES = ((9900.0, 10000.0), (4900.0, 5000.0))

    MULTI_PATTERN_MULTIPLIER: float = 1.3
    SCORE_MAX: float = 100.0


settings = Settings()
