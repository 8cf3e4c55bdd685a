"""Discrete-event network emulator with Go-Back-N and Selective Repeat transport protocols."""

__version__ = "1.0.0"