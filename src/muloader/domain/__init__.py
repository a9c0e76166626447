"""Pure domain rules: identifiers, transitions, capability policy.

No I/O lives here; infrastructure and services depend on this package,
never the other way round.
"""
