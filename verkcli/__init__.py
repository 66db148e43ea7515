# verkcli: command-line client for the Verkada camera APIs

__version__ = "0.1.0"
