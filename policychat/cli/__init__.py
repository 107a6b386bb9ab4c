"""Command-line interface package for PolicyChat.

The entry point is :func:`policychat.cli.main.main`; it is not re-exported
here because the attribute would shadow the :mod:`policychat.cli.main`
submodule.
"""
