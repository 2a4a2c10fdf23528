"""
Highroller — Effect Pipeline & Daily Goal Engine for a Discord casino bot
=========================================================================
Turns raw game payouts into boosted payouts using each player's active
shop effects, and tracks randomly drawn daily goals that pay completion
bonuses.  Command handlers own parsing and rendering; this package owns
the rules.

Package layout::

    highroller/
    ├── config.py          # YAML → typed economy config
    ├── constants.py       # Reference constants + calendar helpers
    ├── database/
    │   ├── engine.py      # SQLAlchemy engine + async helper
    │   └── models.py      # Profiles, goal rows, effect ledger
    ├── engine/
    │   ├── events.py      # GameResult / ShopPurchase / Transfer / Work
    │   ├── actor.py       # EconomyActor capability + bet validation
    │   ├── effects.py     # Effect registry + payout resolver
    │   └── goals.py       # Goal registry + tracker
    └── services/
        ├── store.py           # EconomyStore protocol + SQLAlchemy store
        ├── payout_service.py  # Ledger-backed payout resolution/activation
        ├── goal_service.py    # Daily goal selection (read-through)
        └── dispatch.py        # Façade called by command handlers
"""

__version__ = "0.1.0"
