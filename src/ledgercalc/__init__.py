"""ledgercalc: formula evaluation for accounting templates."""

__version__ = "0.1.0"
