"""Single source of truth for the depscout version.

Read by packaging, ``depscout --version``, the startup error report and the
User-Agent sent to package registries.
"""

__version__ = "0.2.0"
