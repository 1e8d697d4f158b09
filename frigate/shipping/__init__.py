"""Shipment workflow: address validation, rates, labels and label printing."""
