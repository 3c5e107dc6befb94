"""Runtime configuration.

Settings are built from the environment when :mod:`tipvote.config.settings`
is first imported, so this package does not import it eagerly.
"""
