"""
Earnings Insight Module.

Collects quarterly earnings-call transcripts for one company, extracts
sentiment and strategic themes per quarter, and tracks how they move
quarter over quarter.
"""
