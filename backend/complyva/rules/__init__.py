"""Pure business rules: scoring, open-status sets and cross-register derivations"""
