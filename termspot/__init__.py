"""Terminal music client core: command language, key bindings, configuration, events and IPC."""

__version__ = "0.1.0"