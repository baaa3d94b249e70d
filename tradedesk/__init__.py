"""TradeDesk: simulated retail trading back end with an admin back office."""

__version__ = "0.1.0"
