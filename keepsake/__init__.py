"""
Keepsake — the life-state core of a quiet exploration game.

A player moves through a world, keeps a handful of memories, and becomes
someone because of what they kept. This package models that life state:

    1. Memory store (bounded set of kept memories)
    2. Clock (virtual calendar and vividness decay)
    3. Identity (trait profile emerging from memories)
    4. Echo map (places that remember the player)
    5. Atmosphere (world mood painted by memories)
    6. Narrator and ending sequencer (the personalised ending)

Every component talks through a synchronous typed event bus and is
composed explicitly by a KeepsakeSession.
"""

__version__ = "0.1.0"
