"""Escrow state machine: registry, campaign ledger and release engine"""
