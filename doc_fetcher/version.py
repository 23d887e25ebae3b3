"""Version information for doc_fetcher."""

__version__ = "0.1.0"
__author__ = "Henrik Kragh Sørensen"
__description__ = "URL to PDF/Markdown converter with arXiv support and render fallbacks"

# Version history
CHANGELOG = """
0.1.0 (2026-10-19)
------------------
- URL classification (direct PDF, arXiv paper, arXiv listing, webpage)
- arXiv PDF download with title lookup
- arXiv listing/search extraction
- Webpage render chain: headless Chrome -> remote API -> Markdown -> guidance
- Sequential batch processing with progress events
"""
