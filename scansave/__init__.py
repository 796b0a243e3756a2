"""
ScanSave - Source Package

Receipt scanning, spending insights and a conversational assistant
grounded in the user's own receipt ledger.

DESIGN PRINCIPLES:
1. The generative service extracts and enriches; it never owns data
2. Enrichment is best effort, extraction is not
3. Every ledger mutation is persisted before it becomes visible
4. Every step must be auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
