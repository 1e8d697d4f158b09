"""Dinghy - print agent for a Frigate hub.

A dinghy runs next to a printer (Raspberry Pi, desktop, etc.), keeps a
websocket open to its frigate, answers heartbeats, and prints labels when
the frigate sends a print request.

Usage:
    dinghy configure --frigate ws://hub:8080/ws --name office-1 --key SHARED_KEY
    dinghy start
    dinghy status
    dinghy test
"""

__version__ = "0.1.0"
