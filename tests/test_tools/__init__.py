"""
Test Tools Package
Tests for the schedule engine (clock, resolver, ledger, aggregator, adherence, export)
"""
