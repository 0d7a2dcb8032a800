"""
Review services.

- sm2.py: SM-2 scheduling (pure)
- extractor.py: module content → review candidates (pure)
- review_service.py: review queue operations over the repositories
- cleanup.py: background removal of items whose module was deleted
"""
