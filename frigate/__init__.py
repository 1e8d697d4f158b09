"""Frigate - central hub for remote label printing.

The frigate accepts websocket connections from dinghies (print agents),
authenticates them with a rotating shared secret, tracks their liveness
with heartbeats, and drives print jobs on them on behalf of the shipment
workflow.

Usage:
    frigate                     # start the hub on FRIGATE_HOST:FRIGATE_PORT
"""

__version__ = "0.1.0"
