"""
UniBridge AI Core
Decision services behind the UniBridge student portal.

Architecture:
- Opportunity ranking: heuristic scoring with optional DeepSeek judgment
- Wellness check-in triage: crisis detection + supportive replies
- PostgreSQL: read-only source of the live opportunity catalog
"""

__version__ = "1.0.0"
