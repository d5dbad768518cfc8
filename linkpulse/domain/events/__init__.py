"""Domain Event definitions.

Represents significant occurrences within the SDK that observers (logging,
tests, host telemetry) might react to.
"""
