"""KefirCLI: control KEF wireless speakers from the terminal."""

__version__ = "0.1.0"
