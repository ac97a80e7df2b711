"""SOP Script: compiles SOP automation rules into S1 script."""

__version__ = "0.1.0"
