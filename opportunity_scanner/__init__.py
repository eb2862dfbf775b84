"""
AI Opportunity Scanner.

Turns raw language-model output describing AI opportunities into a canonical
analysis and a paginated PDF report.
"""

__version__ = "1.0.0"
