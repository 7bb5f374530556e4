"""Marketplace core: ledger, collaborators, configuration and errors"""
