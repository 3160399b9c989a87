"""Wallet domain - client balances and ledger"""
